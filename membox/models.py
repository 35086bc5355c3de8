from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, Integer, String, Float, DateTime
import datetime as dt

Base = declarative_base()


def _now():
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, default="staff", nullable=False)
    reset_token = Column(String, nullable=True, index=True)
    reset_token_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now)


class Customer(Base):
    __tablename__ = "customers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, unique=True, nullable=False, index=True)
    plan_name = Column(String, nullable=False, default="Monthly")
    # dates are stored as YYYY-MM-DD
    inscription_date = Column(String(10), nullable=False)
    due_date = Column(String(10), nullable=False, index=True)
    monthly_fee = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, default=_now)


class Transaction(Base):
    __tablename__ = "transactions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    concept = Column(String, nullable=False)
    date = Column(String(10), nullable=False, index=True)
    # lookup key only, customers may be gone
    customer_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, default=_now)
