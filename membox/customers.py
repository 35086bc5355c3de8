from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional
import datetime as dt, logging
from .config import Settings
from .db import get_db
from .deps import get_current_user, get_settings, require_admin
from .logic import MembershipStatus, classify, compute_due_date, parse_date
from .models import Customer, Transaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


class CustomerIn(BaseModel):
    full_name: str = ""
    phone: str = ""
    plan_name: str = ""
    inscription_date: Optional[str] = None
    monthly_fee: float = 0.0
    manual_due_date: Optional[str] = None


class RenewalIn(BaseModel):
    inscription_date: Optional[str] = None
    manual_due_date: Optional[str] = None
    record_payment: bool = False
    amount: Optional[float] = None


def customer_out(c: Customer, today=None) -> dict:
    return {
        "id": c.id,
        "full_name": c.full_name,
        "phone": c.phone,
        "plan_name": c.plan_name,
        "inscription_date": c.inscription_date,
        "due_date": c.due_date,
        "monthly_fee": c.monthly_fee,
        "status": c.status,
        "calculated_status": classify(c.due_date, today).value,
    }


def _iso_or_none(value) -> Optional[str]:
    # blank form inputs arrive as ""
    value = (value or "").strip()
    return parse_date(value).isoformat() if value else None


def _get_or_404(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("")
def list_customers(
    status: Optional[str] = None,
    calculated_status: Optional[MembershipStatus] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    q = db.query(Customer)
    if status:
        q = q.filter(Customer.status == status)
    today = dt.date.today()
    rows = [customer_out(c, today) for c in q.order_by(Customer.due_date.asc(), Customer.id.asc()).all()]
    if calculated_status:
        rows = [r for r in rows if r["calculated_status"] == calculated_status.value]
    return rows


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return customer_out(_get_or_404(db, customer_id))


@router.post("", status_code=201)
def create_customer(
    payload: CustomerIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user=Depends(require_admin),
):
    full_name, phone, plan_name = payload.full_name.strip(), payload.phone.strip(), payload.plan_name.strip()
    if not full_name or not phone or not plan_name or not (payload.inscription_date or "").strip():
        raise HTTPException(status_code=400, detail="All fields are required")

    inscription_date = _iso_or_none(payload.inscription_date)
    manual_due_date = _iso_or_none(payload.manual_due_date)
    due_date = compute_due_date(plan_name, inscription_date, manual_due_date, strategy=settings.due_date_strategy)
    customer = Customer(
        full_name=full_name,
        phone=phone,
        plan_name=plan_name,
        inscription_date=inscription_date,
        due_date=due_date,
        monthly_fee=payload.monthly_fee,
        status="active",
    )
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Phone already exists")
    db.refresh(customer)
    logger.info("created customer %s (plan=%s, due=%s)", customer.id, plan_name, due_date)
    return customer_out(customer)


@router.put("/{customer_id}/inactivate")
def inactivate_customer(customer_id: int, db: Session = Depends(get_db), user=Depends(require_admin)):
    customer = _get_or_404(db, customer_id)
    customer.status = "inactive"
    db.commit()
    logger.info("inactivated customer %s", customer_id)
    return {"message": "Customer marked as inactive"}


@router.put("/{customer_id}/inscription-date")
def renew_customer(
    customer_id: int,
    payload: RenewalIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user=Depends(require_admin),
):
    inscription_date = _iso_or_none(payload.inscription_date)
    if not inscription_date:
        raise HTTPException(status_code=400, detail="inscription_date is required")
    manual_due_date = _iso_or_none(payload.manual_due_date)
    customer = _get_or_404(db, customer_id)

    customer.inscription_date = inscription_date
    customer.due_date = compute_due_date(
        customer.plan_name, inscription_date, manual_due_date, strategy=settings.due_date_strategy
    )
    customer.status = "active"

    if payload.record_payment:
        amount = payload.amount if payload.amount is not None else customer.monthly_fee
        if not amount or amount <= 0:
            raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")
        db.add(Transaction(
            type="income",
            amount=amount,
            concept=f"Membership renewal - {customer.full_name}",
            date=dt.date.today().isoformat(),
            customer_id=customer.id,
        ))
    db.commit()
    db.refresh(customer)
    logger.info("renewed customer %s until %s", customer.id, customer.due_date)
    return {"message": "Date updated and customer reactivated", "customer": customer_out(customer)}
