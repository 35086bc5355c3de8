# reports.py - report rows/totals and the routes that serve them
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional
import datetime as dt
import pandas as pd
from .db import get_db
from .deps import get_current_user
from .logic import MembershipStatus, classify, days_until
from .models import Customer
from .render import PDF_MIME, XLSX_MIME, to_pdf, to_xlsx
from .transactions import query_transactions

FINANCIAL_COLUMNS = ["id", "date", "type", "concept", "amount", "customer_id"]
MEMBERSHIP_COLUMNS = [
    "id", "full_name", "phone", "plan_name", "inscription_date", "due_date",
    "monthly_fee", "status", "calculated_status", "days_until_due",
]


def financial_rows(transactions) -> pd.DataFrame:
    df = pd.DataFrame(
        [{c: getattr(t, c) for c in FINANCIAL_COLUMNS} for t in transactions],
        columns=FINANCIAL_COLUMNS,
        dtype=object,  # keeps customer_id as int/None instead of float/NaN
    )
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df


def financial_totals(df: pd.DataFrame) -> dict:
    income = float(df.loc[df["type"] == "income", "amount"].sum())
    expense = float(df.loc[df["type"] == "expense", "amount"].sum())
    return {
        "income": round(income, 2),
        "expense": round(expense, 2),
        "balance": round(income - expense, 2),
        "count": int(len(df)),
    }


def membership_rows(customers, today=None) -> pd.DataFrame:
    today = today or dt.date.today()
    rows = []
    for c in customers:
        rows.append({
            "id": c.id,
            "full_name": c.full_name,
            "phone": c.phone,
            "plan_name": c.plan_name,
            "inscription_date": c.inscription_date,
            "due_date": c.due_date,
            "monthly_fee": c.monthly_fee,
            "status": c.status,
            "calculated_status": classify(c.due_date, today).value,
            "days_until_due": days_until(c.due_date, today),
        })
    df = pd.DataFrame(rows, columns=MEMBERSHIP_COLUMNS)
    return df.sort_values(["due_date", "id"], kind="stable").reset_index(drop=True)


def membership_totals(df: pd.DataFrame) -> dict:
    counts = df["calculated_status"].value_counts()
    active = df[df["status"] == "active"]
    return {
        "total": int(len(df)),
        "active": int(len(active)),
        "inactive": int((df["status"] == "inactive").sum()),
        "by_status": {s.value: int(counts.get(s.value, 0)) for s in MembershipStatus},
        "expected_monthly_income": round(float(pd.to_numeric(active["monthly_fee"]).sum()), 2),
    }


def _records(df: pd.DataFrame) -> list:
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


router = APIRouter(prefix="/reports", tags=["reports"])


def _financial(db, start, end):
    df = financial_rows(query_transactions(db, start=start, end=end))
    return df, financial_totals(df)


def _membership(db):
    df = membership_rows(db.query(Customer).all())
    return df, membership_totals(df)


@router.get("/financial")
def financial_report(start: Optional[str] = None, end: Optional[str] = None,
                     db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _financial(db, start, end)
    return {"start": start, "end": end, "rows": _records(df), "totals": totals}


@router.get("/financial.xlsx")
def financial_xlsx(start: Optional[str] = None, end: Optional[str] = None,
                   db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _financial(db, start, end)
    return Response(
        to_xlsx(df, totals, sheet="Transactions"),
        media_type=XLSX_MIME,
        headers={"Content-Disposition": 'attachment; filename="financial_report.xlsx"'},
    )


@router.get("/financial.pdf")
def financial_pdf(start: Optional[str] = None, end: Optional[str] = None,
                  db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _financial(db, start, end)
    title = f"Financial report {start or '...'} to {end or '...'}"
    return Response(
        to_pdf(title, df, ["date", "type", "concept", "amount"], totals),
        media_type=PDF_MIME,
        headers={"Content-Disposition": 'attachment; filename="financial_report.pdf"'},
    )


@router.get("/membership")
def membership_report(db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _membership(db)
    return {"date": dt.date.today().isoformat(), "rows": _records(df), "totals": totals}


@router.get("/membership.xlsx")
def membership_xlsx(db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _membership(db)
    return Response(
        to_xlsx(df, totals, sheet="Members"),
        media_type=XLSX_MIME,
        headers={"Content-Disposition": 'attachment; filename="membership_report.xlsx"'},
    )


@router.get("/membership.pdf")
def membership_pdf(db: Session = Depends(get_db), user=Depends(get_current_user)):
    df, totals = _membership(db)
    flat = {k: v for k, v in totals.items() if k != "by_status"}
    flat.update(totals["by_status"])
    return Response(
        to_pdf(f"Membership report {dt.date.today().isoformat()}", df,
               ["full_name", "phone", "plan_name", "due_date", "calculated_status"], flat),
        media_type=PDF_MIME,
        headers={"Content-Disposition": 'attachment; filename="membership_report.pdf"'},
    )
