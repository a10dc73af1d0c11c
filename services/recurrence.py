"""
services/recurrence.py
----------------------
Expands a bill and its recurrence policy into dated instances.

Month-based steps keep the day-of-month and let it overflow into the
following month when the target month is shorter (2024-01-31 plus one
month is 2024-03-02, not 2024-02-29). Each step starts from the previous
generated date, so an overflow carries into the rest of the series.
"""

from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from models.bill import Interval, Obligation, ObligationInstance, RecurrencePolicy


def _add_months(current: date, months: int) -> date:
    first_of_target = current + relativedelta(months=months, day=1)
    return first_of_target + timedelta(days=current.day - 1)


def add_interval(current: date, interval) -> date:
    """
    Advance a date by one recurrence step.

    Args:
        current: The date to advance.
        interval: An Interval (or its string value). Unknown values
            step monthly.

    Returns:
        The next date in the series.
    """
    interval = coerce_interval(interval)
    if interval is Interval.WEEKLY:
        return current + timedelta(days=7)
    if interval is Interval.QUARTERLY:
        return _add_months(current, 3)
    if interval is Interval.ANNUAL:
        return _add_months(current, 12)
    return _add_months(current, 1)


# ── Input normalizers ─────────────────────────────────────

def coerce_interval(value) -> Interval:
    """Map a form value to an Interval, falling back to monthly."""
    if isinstance(value, Interval):
        return value
    try:
        return Interval(str(value).strip().lower())
    except ValueError:
        return Interval.MONTHLY


def coerce_count(value) -> Optional[int]:
    """Return a positive repeat count, or None when absent, zero or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        count = int(str(value).strip())
    except ValueError:
        return None
    return count if count > 0 else None


def coerce_date(value) -> Optional[date]:
    """Parse a YYYY-MM-DD value; empty or malformed input gives None."""
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


# ── Expansion ─────────────────────────────────────────────

def expand_dates(start: date, policy: RecurrencePolicy) -> list[date]:
    """Generate the due dates for `policy`, beginning at `start`."""
    if not policy.is_recurring:
        return [start]

    interval = coerce_interval(policy.interval)
    count = coerce_count(policy.count)

    if count:
        dates = [start]
        while len(dates) < count:
            dates.append(add_interval(dates[-1], interval))
        return dates

    if policy.end_date is not None:
        dates = []
        current = start
        while current <= policy.end_date:
            dates.append(current)
            current = add_interval(current, interval)
        return dates

    # recurring without a bound: never generate an open-ended series
    return [start]


def to_instance(base: Obligation, policy: RecurrencePolicy) -> ObligationInstance:
    """Copy `base` into a pending instance carrying the policy's metadata."""
    instance = ObligationInstance(
        user_id=base.user_id,
        kind=base.kind,
        amount=base.amount,
        due_date=base.due_date,
        party_name=base.party_name,
        payment_method=base.payment_method,
        description=base.description,
    )
    if not policy.is_recurring:
        return instance
    return replace(
        instance,
        is_recurring=True,
        recurrence_interval=coerce_interval(policy.interval),
        recurrence_count=coerce_count(policy.count),
        recurrence_end_date=policy.end_date,
    )


def expand(base: Obligation, policy: RecurrencePolicy) -> list[ObligationInstance]:
    """
    Turn one submitted obligation into the rows to insert.

    Every instance copies `base` with its own due date and a pending
    status. Recurrence metadata is attached only for recurring policies.

    Args:
        base: The obligation as submitted.
        policy: How it repeats.

    Returns:
        Instances ordered by due date.
    """
    template = to_instance(base, policy)
    return [replace(template, due_date=d) for d in expand_dates(base.due_date, policy)]
