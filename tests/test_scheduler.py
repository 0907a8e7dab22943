"""Tests for the recurring rule scheduler."""

from datetime import date
from decimal import Decimal

import pytest

from fincore.models.ledger import EntryKind
from fincore.scheduling import (
    PayloadError,
    UnknownFrequencyError,
    advance,
    is_due,
    next_due_date,
    parse_payload,
)
from fincore.timemath import FAR_FUTURE

from conftest import make_payload, make_rule


class TestIsDue:
    """A rule is due when active and its date has arrived."""

    def test_due_on_the_day(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15))
        assert is_due(rule, date(2024, 3, 15))

    def test_due_when_overdue(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 1))
        assert is_due(rule, date(2024, 3, 15))

    def test_not_due_before_date(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 16))
        assert not is_due(rule, date(2024, 3, 15))

    def test_inactive_rule_never_due(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 1), active=False)
        assert not is_due(rule, date(2024, 3, 15))


class TestAdvance:
    """Next due date per frequency."""

    def test_monthly_leap_year_clamp(self, owner_id):
        rule = make_rule(owner_id, date(2024, 1, 31), frequency="monthly")
        assert advance(rule) == date(2024, 2, 29)

    def test_monthly_common_year_clamp(self, owner_id):
        rule = make_rule(owner_id, date(2023, 1, 31), frequency="monthly")
        assert advance(rule) == date(2023, 2, 28)

    @pytest.mark.parametrize("frequency,expected", [
        ("daily", date(2024, 3, 16)),
        ("weekly", date(2024, 3, 22)),
        ("monthly", date(2024, 4, 15)),
        ("yearly", date(2025, 3, 15)),
    ])
    def test_each_frequency(self, owner_id, frequency, expected):
        rule = make_rule(owner_id, date(2024, 3, 15), frequency=frequency)
        assert advance(rule) == expected

    def test_once_parks_rule_in_far_future(self, owner_id):
        """A one-off rule is never due again."""
        rule = make_rule(owner_id, date(2024, 3, 15), frequency="once")
        next_due = advance(rule)
        assert next_due == FAR_FUTURE
        assert not is_due(rule.model_copy(update={"next_due_on": next_due}), date(9000, 1, 1))

    def test_frequency_is_case_insensitive(self):
        assert next_due_date(date(2024, 3, 15), "WEEKLY") == date(2024, 3, 22)

    def test_unknown_frequency_raises(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15), frequency="fortnightly")
        with pytest.raises(UnknownFrequencyError, match="fortnightly"):
            advance(rule)

    def test_unknown_frequency_lenient_falls_back_to_monthly(self, owner_id):
        rule = make_rule(owner_id, date(2024, 1, 31), frequency="fortnightly")
        assert advance(rule, lenient=True) == date(2024, 2, 29)


class TestParsePayload:
    """Payload templates are JSON LedgerPayloads."""

    def test_valid_payload(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15), payload=make_payload(
            amount="25000", kind="expense", category="Rent/Mortgage", note="Flat rent",
        ))
        payload = parse_payload(rule)
        assert payload.amount == Decimal("25000")
        assert payload.kind == EntryKind.EXPENSE
        assert payload.category == "Rent/Mortgage"
        assert payload.note == "Flat rent"

    def test_invalid_json(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15), payload="{not json")
        with pytest.raises(PayloadError):
            parse_payload(rule)

    def test_missing_fields(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15), payload='{"amount": 10}')
        with pytest.raises(PayloadError):
            parse_payload(rule)

    def test_negative_amount(self, owner_id):
        rule = make_rule(owner_id, date(2024, 3, 15), payload=make_payload(amount="-5"))
        with pytest.raises(PayloadError):
            parse_payload(rule)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
