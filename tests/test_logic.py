"""Due-date derivation and membership status classification."""

import datetime as dt

import pytest

from membox.logic import (
    MembershipStatus,
    ValidationError,
    add_months,
    classify,
    compute_due_date,
    days_until,
    parse_date,
)

DAYS = [dt.date(2024, 1, 1), dt.date(2024, 2, 29), dt.date(2023, 12, 31), dt.date(2025, 6, 10)]


# ---------- classify ----------

@pytest.mark.parametrize("d", DAYS)
def test_same_day_is_due_today(d):
    assert classify(d, d) == MembershipStatus.DUE_TODAY


@pytest.mark.parametrize("d", DAYS)
def test_next_day_is_due_tomorrow(d):
    assert classify(d + dt.timedelta(days=1), d) == MembershipStatus.DUE_TOMORROW


@pytest.mark.parametrize("d", DAYS)
@pytest.mark.parametrize("n", [2, 3, 30, 400])
def test_further_out_is_active(d, n):
    assert classify(d + dt.timedelta(days=n), d) == MembershipStatus.ACTIVE


@pytest.mark.parametrize("d", DAYS)
@pytest.mark.parametrize("n", [1, 2, 31, 365])
def test_past_is_overdue(d, n):
    assert classify(d - dt.timedelta(days=n), d) == MembershipStatus.OVERDUE


def test_classify_accepts_iso_strings():
    assert classify("2024-06-10", today="2024-06-10") == "DUE_TODAY"
    assert classify("2024-06-05", today="2024-06-10") == "OVERDUE"
    assert classify("2024-06-11", today="2024-06-10") == "DUE_TOMORROW"
    assert classify("2024-07-01", today="2024-06-10") == "ACTIVE"


def test_classify_ignores_time_of_day():
    due = dt.datetime(2024, 6, 10, 23, 59)
    today = dt.datetime(2024, 6, 10, 0, 1)
    assert classify(due, today) == MembershipStatus.DUE_TODAY
    assert classify(dt.datetime(2024, 6, 11, 0, 0), dt.datetime(2024, 6, 10, 23, 59)) == MembershipStatus.DUE_TOMORROW


def test_classify_crosses_month_and_year_boundaries():
    assert classify("2024-01-01", today="2023-12-31") == MembershipStatus.DUE_TOMORROW
    assert classify("2024-03-01", today="2024-02-29") == MembershipStatus.DUE_TOMORROW
    assert classify("2023-03-01", today="2023-02-28") == MembershipStatus.DUE_TOMORROW


def test_classify_is_idempotent():
    first = classify("2024-06-12", today="2024-06-10")
    assert classify("2024-06-12", today="2024-06-10") == first == MembershipStatus.ACTIVE


def test_classify_defaults_to_local_today():
    today = dt.date.today()
    assert classify(today.isoformat()) == MembershipStatus.DUE_TODAY
    assert days_until(today + dt.timedelta(days=5)) == 5


@pytest.mark.parametrize("bad", ["", None, "2024-13-01", "2024-02-30", "10/06/2024", "2024-6-1", "soon"])
def test_classify_rejects_bad_due_date(bad):
    with pytest.raises(ValidationError):
        classify(bad, today="2024-06-10")


# ---------- compute_due_date ----------

@pytest.mark.parametrize("plan, expected", [
    ("Monthly", "2024-02-15"),
    ("Bimonthly", "2024-03-15"),
    ("Quarterly", "2024-04-15"),
    ("Unknown", "2024-02-15"),
    ("", "2024-02-15"),
    (None, "2024-02-15"),
])
def test_plan_offsets(plan, expected):
    assert compute_due_date(plan, "2024-01-15", None) == expected


def test_accepts_date_objects():
    assert compute_due_date("Quarterly", dt.date(2024, 1, 15)) == "2024-04-15"


@pytest.mark.parametrize("plan", ["Monthly", "Quarterly", "Whatever"])
@pytest.mark.parametrize("start", ["2024-01-15", "not a date"])
def test_manual_override_wins(plan, start):
    assert compute_due_date(plan, start, "2024-05-05") == "2024-05-05"


def test_manual_override_as_date():
    assert compute_due_date("Monthly", "2024-01-15", dt.date(2024, 1, 20)) == "2024-01-20"


def test_empty_override_falls_back_to_plan():
    assert compute_due_date("Monthly", "2024-01-15", "") == "2024-02-15"


def test_flat30_strategy_ignores_plan():
    assert compute_due_date("Quarterly", "2024-01-15", strategy="flat30") == "2024-02-14"
    assert compute_due_date("Monthly", "2024-02-15", strategy="flat30") == "2024-03-16"


def test_unknown_strategy():
    with pytest.raises(ValueError):
        compute_due_date("Monthly", "2024-01-15", strategy="weekly")


def test_bad_inscription_date():
    with pytest.raises(ValidationError):
        compute_due_date("Monthly", "2024-02-31")


# ---------- month rollover (clamped) ----------

@pytest.mark.parametrize("start, months, expected", [
    (dt.date(2024, 1, 31), 1, dt.date(2024, 2, 29)),
    (dt.date(2023, 1, 31), 1, dt.date(2023, 2, 28)),
    (dt.date(2024, 3, 31), 1, dt.date(2024, 4, 30)),
    (dt.date(2024, 11, 30), 3, dt.date(2025, 2, 28)),
    (dt.date(2024, 12, 15), 1, dt.date(2025, 1, 15)),
    (dt.date(2024, 2, 29), 12, dt.date(2025, 2, 28)),
    (dt.date(2024, 10, 31), 2, dt.date(2024, 12, 31)),
])
def test_add_months_clamps(start, months, expected):
    assert add_months(start, months) == expected


def test_monthly_plan_on_month_end():
    assert compute_due_date("Monthly", "2024-01-31") == "2024-02-29"


def test_parse_date_drops_time():
    assert parse_date(dt.datetime(2024, 6, 10, 22, 30)) == dt.date(2024, 6, 10)
    assert parse_date(" 2024-06-10 ") == dt.date(2024, 6, 10)
