"""
Calendar Arithmetic

Small, pure date helpers shared by the scheduler, the materializer
and the analytics modules.

DESIGN DECISION: Month and year arithmetic clamps the day-of-month to the
end of a shorter target month (Jan 31 + 1 month = Feb 28/29). This is what
keeps a monthly rule due on the 31st from sliding into the next month.
dateutil's relativedelta implements exactly that policy.

Horizons measured in "average months" divide by AVERAGE_DAYS_PER_MONTH
(30.44). This drifts by up to about one day per use compared with true
calendar months; it is used only where a fractional horizon is rounded
anyway (months remaining on a goal, months a plan has been running).
"""

import math
from datetime import date
from typing import Iterator

from dateutil.relativedelta import relativedelta

__all__ = [
    "AVERAGE_DAYS_PER_MONTH",
    "FAR_FUTURE",
    "add_days",
    "add_months",
    "add_years",
    "month_start",
    "month_end",
    "months_between",
    "days_between",
    "elapsed_average_months",
    "month_key",
    "iter_month_starts",
]


AVERAGE_DAYS_PER_MONTH = 30.44

# A "once" rule is parked here after it fires; it is never due again.
FAR_FUTURE = date.max


def add_days(value: date, days: int) -> date:
    """Shift a date by a (possibly negative) number of days."""
    return value + relativedelta(days=days)


def add_months(value: date, months: int) -> date:
    """Shift by calendar months, clamping to the last day of a shorter month."""
    return value + relativedelta(months=months)


def add_years(value: date, years: int) -> date:
    """Shift by calendar years; Feb 29 lands on Feb 28 in non-leap years."""
    return value + relativedelta(years=years)


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    # relativedelta(day=31) clamps to the real last day of the month
    return value + relativedelta(day=31)


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months between two dates, order-insensitive.

    Partial months are truncated: Jan 31 -> Feb 28 is 0 months,
    Jan 15 -> Mar 15 is 2 months.
    """
    delta = relativedelta(end, start)
    return abs(delta.years * 12 + delta.months)


def days_between(start: date, end: date) -> int:
    """Absolute number of days between two dates."""
    return abs((end - start).days)


def elapsed_average_months(start: date, end: date) -> int:
    """
    Whole average-length months from start to end.

    Returns 0 when end is on or before start.
    """
    days = (end - start).days
    if days <= 0:
        return 0
    return math.floor(days / AVERAGE_DAYS_PER_MONTH)


def month_key(value: date) -> str:
    """Format a date as its "YYYY-MM" month bucket."""
    return f"{value.year:04d}-{value.month:02d}"


def iter_month_starts(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from start's month through end's month."""
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = add_months(current, 1)
