"""Recurring rule scheduling package."""

from fincore.scheduling.scheduler import (
    PayloadError,
    SchedulingError,
    UnknownFrequencyError,
    advance,
    is_due,
    next_due_date,
    parse_payload,
)

__all__ = [
    "PayloadError",
    "SchedulingError",
    "UnknownFrequencyError",
    "advance",
    "is_due",
    "next_due_date",
    "parse_payload",
]
