from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Literal, Optional
import datetime as dt, logging
from .db import get_db
from .deps import get_current_user, require_admin
from .logic import parse_date
from .models import Transaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


class TransactionIn(BaseModel):
    type: Literal["income", "expense"]
    amount: float = Field(gt=0)
    concept: str = Field(min_length=1)
    date: Optional[dt.date] = None
    customer_id: Optional[int] = None


def transaction_out(t: Transaction) -> dict:
    return {
        "id": t.id,
        "type": t.type,
        "amount": t.amount,
        "concept": t.concept,
        "date": t.date,
        "customer_id": t.customer_id,
    }


def query_transactions(db: Session, type=None, start=None, end=None, customer_id=None):
    """Transactions in [start, end], newest first. Bounds are YYYY-MM-DD."""
    q = db.query(Transaction)
    if type:
        q = q.filter(Transaction.type == type)
    if start:
        q = q.filter(Transaction.date >= parse_date(start).isoformat())
    if end:
        q = q.filter(Transaction.date <= parse_date(end).isoformat())
    if customer_id is not None:
        q = q.filter(Transaction.customer_id == customer_id)
    return q.order_by(Transaction.date.desc(), Transaction.id.desc()).all()


@router.post("", status_code=201)
def create_transaction(payload: TransactionIn, db: Session = Depends(get_db), user=Depends(require_admin)):
    t = Transaction(
        type=payload.type,
        amount=payload.amount,
        concept=payload.concept.strip(),
        date=(payload.date or dt.date.today()).isoformat(),
        customer_id=payload.customer_id,
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("recorded %s of %.2f (%s)", t.type, t.amount, t.concept)
    return transaction_out(t)


@router.get("")
def list_transactions(
    type: Optional[Literal["income", "expense"]] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    customer_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return [transaction_out(t) for t in query_transactions(db, type, start, end, customer_id)]
