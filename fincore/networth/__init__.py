"""Net worth aggregation package."""

from fincore.networth.aggregator import (
    bank_balance,
    monthly_cash_flows,
    net_worth,
    projection_by_calendar_year,
    realized_contributions,
    timeline,
)

__all__ = [
    "bank_balance",
    "monthly_cash_flows",
    "net_worth",
    "projection_by_calendar_year",
    "realized_contributions",
    "timeline",
]
