"""SIP and cash-flow projection package."""

from fincore.projections.cashflow import (
    average_monthly_expenses,
    project_cash_flow,
    recurring_monthly_amounts,
    weighted_annual_increase,
)
from fincore.projections.sip import (
    final_value,
    future_value_factor,
    monthly_rate,
    project,
    project_range,
    round_money,
    solve_required_monthly_contribution,
)

__all__ = [
    # SIP
    "final_value",
    "future_value_factor",
    "monthly_rate",
    "project",
    "project_range",
    "round_money",
    "solve_required_monthly_contribution",
    # Cash flow
    "average_monthly_expenses",
    "project_cash_flow",
    "recurring_monthly_amounts",
    "weighted_annual_increase",
]
