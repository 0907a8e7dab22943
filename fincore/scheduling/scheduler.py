"""
Recurring Rule Scheduler

Decides whether a recurring rule is due and where its schedule moves
after it fires.

DESIGN DECISION: An unknown frequency is an error, not a silent monthly
advance. Legacy data that relies on the old tolerant behaviour can opt in
with FINCORE_LENIENT_UNKNOWN_FREQUENCY, which advances by one month and
logs a warning instead.

Nothing in this module writes anything; the materializer uses it to work
out the new schedule before it touches storage.
"""

from datetime import date

import structlog
from pydantic import ValidationError

from fincore.models.ledger import Frequency, LedgerPayload, RecurringRule
from fincore.timemath import FAR_FUTURE, add_days, add_months, add_years

logger = structlog.get_logger(__name__)


class SchedulingError(Exception):
    """Base exception for recurring rule problems."""
    pass


class UnknownFrequencyError(SchedulingError):
    """The rule's frequency is not one we know how to advance."""

    def __init__(self, frequency: str):
        self.frequency = frequency
        super().__init__(f"Unknown recurrence frequency: {frequency!r}")


class PayloadError(SchedulingError):
    """The rule's payload template can't be turned into a ledger entry."""
    pass


def is_due(rule: RecurringRule, as_of: date) -> bool:
    """A rule is due when it is active and its next due date has arrived."""
    return rule.active and rule.next_due_on <= as_of


def next_due_date(current: date, frequency: str, *, lenient: bool = False) -> date:
    """
    Compute the due date following `current`.

    Args:
        current: The due date that is being consumed
        frequency: One of Frequency, case-insensitive
        lenient: Advance unknown frequencies by one month instead of raising

    Returns:
        The next due date. "once" returns FAR_FUTURE.

    Raises:
        UnknownFrequencyError: If the frequency is unknown and lenient is off
    """
    try:
        freq = Frequency(frequency.strip().lower())
    except ValueError:
        if not lenient:
            raise UnknownFrequencyError(frequency)
        logger.warning(
            "unknown_frequency_fallback",
            frequency=frequency,
            current=current.isoformat(),
        )
        return add_months(current, 1)

    if freq == Frequency.ONCE:
        return FAR_FUTURE
    if freq == Frequency.DAILY:
        return add_days(current, 1)
    if freq == Frequency.WEEKLY:
        return add_days(current, 7)
    if freq == Frequency.MONTHLY:
        return add_months(current, 1)
    return add_years(current, 1)


def advance(rule: RecurringRule, *, lenient: bool = False) -> date:
    """Next due date of a rule, counted from its current due date."""
    return next_due_date(rule.next_due_on, rule.frequency, lenient=lenient)


def parse_payload(rule: RecurringRule) -> LedgerPayload:
    """
    Deserialize a rule's payload template.

    Raises:
        PayloadError: If the template is not valid JSON or misses required fields
    """
    try:
        return LedgerPayload.model_validate_json(rule.payload_template)
    except ValidationError as e:
        raise PayloadError(
            f"Invalid payload on recurring rule {rule.id}: "
            f"{e.error_count()} error(s), first: {e.errors()[0]['msg']}"
        ) from e
