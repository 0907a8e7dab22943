"""Tests for net worth aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from fincore.models.ledger import EntryKind, InvestmentPlan, LedgerEntry, PlanStatus
from fincore.networth import (
    bank_balance,
    monthly_cash_flows,
    net_worth,
    projection_by_calendar_year,
    realized_contributions,
    timeline,
)
from fincore.projections import monthly_rate, project


@pytest.fixture
def entries(owner_id):
    def _entry(amount, kind, occurred_on):
        return LedgerEntry(
            owner_id=owner_id,
            amount=Decimal(str(amount)),
            kind=kind,
            category="Misc",
            occurred_on=occurred_on,
        )
    return [
        _entry(50000, EntryKind.INCOME, date(2024, 1, 1)),
        _entry(12000, EntryKind.EXPENSE, date(2024, 1, 15)),
        _entry(5000, EntryKind.INVESTMENT, date(2024, 1, 20)),
        _entry(99999, EntryKind.TRANSFER, date(2024, 2, 2)),
        _entry(50000, EntryKind.INCOME, date(2024, 3, 1)),
        _entry(8000.55, EntryKind.EXPENSE, date(2024, 3, 9)),
    ]


class TestBankBalance:
    """Income minus expenses minus investments; transfers ignored."""

    def test_bank_balance(self, entries):
        assert bank_balance(entries) == pytest.approx(74999.45)

    def test_empty(self):
        assert bank_balance([]) == 0.0


class TestNetWorth:
    """min and max are the same figure for now."""

    def test_net_worth(self, entries):
        result = net_worth(entries, 15000)
        assert result.bank_balance == pytest.approx(74999.45)
        assert result.investments == 15000
        assert result.min == pytest.approx(89999.45)
        assert result.max == result.min

    def test_realized_contributions(self, owner_id):
        plans = [
            InvestmentPlan(
                owner_id=owner_id,
                monthly_contribution=Decimal("5000"),
                expected_return_min=8,
                expected_return_max=12,
                start_on=date(2024, 1, 1),
            ),
            InvestmentPlan(
                owner_id=owner_id,
                monthly_contribution=Decimal("3000"),
                expected_return_min=8,
                expected_return_max=12,
                start_on=date(2023, 1, 1),
                status=PlanStatus.PAUSED,
            ),
            InvestmentPlan(
                owner_id=owner_id,
                monthly_contribution=Decimal("2000"),
                expected_return_min=8,
                expected_return_max=12,
                start_on=date(2024, 6, 1),
            ),
        ]
        # Jan 1 -> Apr 1 is 91 days: 2 average months; the June plan hasn't started
        assert realized_contributions(plans, date(2024, 4, 1)) == 10000


class TestTimeline:
    """Month-by-month net worth."""

    def test_monthly_cash_flows(self, entries):
        flows = monthly_cash_flows(entries)
        assert list(flows) == ["2024-01", "2024-02", "2024-03"]
        assert flows["2024-01"] == 33000
        assert flows["2024-02"] == 0
        assert flows["2024-03"] == pytest.approx(41999.45)

    def test_timeline_accumulates_and_fills_gaps(self, entries):
        points = timeline(
            entries,
            {2024: 20000},
            starting_balance=1000,
            through=date(2024, 5, 31),
        )
        assert [p.month for p in points] == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05"]
        assert points[0].cash == 34000
        assert points[1].cash == 34000
        assert points[2].cash == pytest.approx(75999.45)
        assert points[4].cash == pytest.approx(75999.45)
        assert points[0].investments == 20000
        assert points[2].net_worth == pytest.approx(95999.45)

    def test_timeline_missing_year_counts_as_zero(self, entries):
        points = timeline(entries, {2023: 5000})
        assert all(p.investments == 0 for p in points)
        assert points[-1].month == "2024-03"

    def test_empty_timeline(self):
        assert timeline([], {2024: 1000}) == []

    def test_projection_by_calendar_year(self):
        points = project(1000, monthly_rate(12), 30, sample="yearly")
        by_year = projection_by_calendar_year(points, 2024)
        assert sorted(by_year) == [2024, 2025, 2026]
        assert by_year[2024] == points[0].value
        assert by_year[2026] == points[-1].value


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
