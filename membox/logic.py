# logic.py - due-date derivation and membership status classification
import datetime as dt
import enum
import re

PLAN_MONTHS = {
    "Monthly": 1,
    "Bimonthly": 2,
    "Quarterly": 3,
}
DEFAULT_PLAN_MONTHS = 1
FLAT_DAYS = 30

STRATEGY_PLAN = "plan"
STRATEGY_FLAT30 = "flat30"
STRATEGIES = (STRATEGY_PLAN, STRATEGY_FLAT30)

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class ValidationError(ValueError):
    """A value could not be read as a calendar date."""


class MembershipStatus(str, enum.Enum):
    DUE_TODAY = "DUE_TODAY"
    DUE_TOMORROW = "DUE_TOMORROW"
    OVERDUE = "OVERDUE"
    ACTIVE = "ACTIVE"


def parse_date(value) -> dt.date:
    """
    Normalize `value` to a naive calendar date.

    Strings must be YYYY-MM-DD. The date is built from its year/month/day
    parts so no timezone conversion can shift it by a day.
    """
    if isinstance(value, dt.datetime):
        return dt.date(value.year, value.month, value.day)
    if isinstance(value, dt.date):
        return value
    m = _ISO_DATE.match(str(value or "").strip())
    if not m:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    y, mo, d = (int(g) for g in m.groups())
    try:
        return dt.date(y, mo, d)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r} ({e})") from e


def add_months(start: dt.date, months: int) -> dt.date:
    """
    Add calendar months, clamping the day to the end of the target month
    (Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    if m == 12:
        next_month = dt.date(y + 1, 1, 1)
    else:
        next_month = dt.date(y, m + 1, 1)
    last_day = (next_month - dt.timedelta(days=1)).day
    return dt.date(y, m, min(start.day, last_day))


def plan_months(plan_name) -> int:
    # unknown plans fall back to one month
    return PLAN_MONTHS.get((plan_name or "").strip(), DEFAULT_PLAN_MONTHS)


def compute_due_date(plan_name, inscription_date, manual_due_date=None, strategy: str = STRATEGY_PLAN) -> str:
    """
    Derive the next due date as YYYY-MM-DD.

    A non-empty `manual_due_date` wins and is returned as given. Otherwise the
    `plan` strategy adds the plan's calendar months to `inscription_date`,
    and `flat30` adds 30 days whatever the plan.
    """
    if manual_due_date:
        if isinstance(manual_due_date, dt.date):
            return parse_date(manual_due_date).isoformat()
        return manual_due_date

    start = parse_date(inscription_date)
    if strategy == STRATEGY_PLAN:
        due = add_months(start, plan_months(plan_name))
    elif strategy == STRATEGY_FLAT30:
        due = start + dt.timedelta(days=FLAT_DAYS)
    else:
        raise ValueError(f"Unknown due date strategy: {strategy!r}")
    return due.isoformat()


def days_until(due_date, today=None) -> int:
    due = parse_date(due_date)
    ref = parse_date(today) if today is not None else dt.date.today()
    return (due - ref).days


def classify(due_date, today=None) -> MembershipStatus:
    diff_days = days_until(due_date, today)
    if diff_days == 0:
        return MembershipStatus.DUE_TODAY
    if diff_days == 1:
        return MembershipStatus.DUE_TOMORROW
    if diff_days < 0:
        return MembershipStatus.OVERDUE
    return MembershipStatus.ACTIVE
