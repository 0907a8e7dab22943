"""Calendar arithmetic package."""

from fincore.timemath.calendar_math import (
    AVERAGE_DAYS_PER_MONTH,
    FAR_FUTURE,
    add_days,
    add_months,
    add_years,
    days_between,
    elapsed_average_months,
    iter_month_starts,
    month_end,
    month_key,
    month_start,
    months_between,
)

__all__ = [
    "AVERAGE_DAYS_PER_MONTH",
    "FAR_FUTURE",
    "add_days",
    "add_months",
    "add_years",
    "days_between",
    "elapsed_average_months",
    "iter_month_starts",
    "month_end",
    "month_key",
    "month_start",
    "months_between",
]
