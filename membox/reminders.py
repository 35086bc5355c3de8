from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import datetime as dt, logging
from .config import Settings
from .db import get_db
from .deps import get_current_user
from .logic import MembershipStatus, classify, parse_date
from .models import Customer

logger = logging.getLogger(__name__)

REMIND_ON = (MembershipStatus.DUE_TODAY, MembershipStatus.DUE_TOMORROW, MembershipStatus.OVERDUE)


def collect_reminders(customers, today=None) -> list:
    """Active customers whose payment is due today, tomorrow, or already late."""
    today = today or dt.date.today()
    out = []
    for c in customers:
        if c.status != "active":
            continue
        status = classify(c.due_date, today)
        if status in REMIND_ON:
            out.append({
                "customer_id": c.id,
                "full_name": c.full_name,
                "phone": c.phone,
                "due_date": c.due_date,
                "calculated_status": status.value,
            })
    out.sort(key=lambda r: (parse_date(r["due_date"]), r["customer_id"]))
    return out


def run_reminder_check(session_factory, today=None) -> list:
    logger.info("running automatic reminder check")
    db = session_factory()
    try:
        reminders = collect_reminders(db.query(Customer).filter(Customer.status == "active").all(), today)
    finally:
        db.close()
    for r in reminders:
        logger.info("reminder: %s (%s) %s, due %s", r["full_name"], r["phone"], r["calculated_status"], r["due_date"])
    logger.info("reminder check done: %d customer(s) to contact", len(reminders))
    return reminders


def start_scheduler(settings: Settings, session_factory):
    if not settings.reminders_enabled:
        return None
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_reminder_check, CronTrigger.from_crontab(settings.reminder_cron), args=[session_factory])
    scheduler.start()
    logger.info("reminder scheduler started (%s)", settings.reminder_cron)
    return scheduler


router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("")
def list_reminders(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return collect_reminders(db.query(Customer).filter(Customer.status == "active").all())
