"""
Forward Cash-Flow Projection

Rolls the current salary, average spend, recurring rules and active
investment plans forward month by month.

Investments are projected with the same accumulation as a single SIP
(projections.sip.project), using the contribution-weighted step-up of
all active plans.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Union

import structlog

from fincore.models.ledger import EntryKind, InvestmentPlan, LedgerEntry, RecurringRule
from fincore.models.reports import CashFlowPoint
from fincore.projections.sip import monthly_rate, project, round_money
from fincore.scheduling import PayloadError, parse_payload
from fincore.timemath import add_months, days_between, month_key

logger = structlog.get_logger(__name__)

Number = Union[int, float, Decimal]


def recurring_monthly_amounts(rules: Iterable[RecurringRule]) -> tuple[float, float]:
    """
    Sum active recurring rules into (income, expense) per occurrence.

    Every non-income payload counts as expense. Rules whose payload
    can't be parsed are left out.
    """
    income = Decimal("0")
    expense = Decimal("0")
    for rule in rules:
        if not rule.active:
            continue
        try:
            payload = parse_payload(rule)
        except PayloadError as e:
            logger.debug("recurring_payload_ignored", rule_id=str(rule.id), error=str(e))
            continue
        if payload.kind == EntryKind.INCOME:
            income += payload.amount
        else:
            expense += payload.amount
    return round_money(income), round_money(expense)


def weighted_annual_increase(plans: Iterable[InvestmentPlan]) -> float:
    """Annual step-up percent of a set of plans, weighted by contribution."""
    weighted_sum = 0.0
    weight = 0.0
    for plan in plans:
        contribution = float(plan.monthly_contribution)
        weighted_sum += plan.annual_increase_percent * contribution
        weight += contribution
    if weight == 0:
        return 0.0
    return weighted_sum / weight


def average_monthly_expenses(
    entries: Iterable[LedgerEntry],
    today: date,
    lookback_months: int = 3,
) -> float:
    """
    Average monthly spend.

    Uses expenses of the last `lookback_months` months when there are
    any; otherwise spreads all expenses over the 30-day months since
    the oldest one (at least one month).
    """
    expenses = [e for e in entries if e.kind == EntryKind.EXPENSE]
    if not expenses:
        return 0.0

    window_start = add_months(today, -lookback_months)
    recent = [e for e in expenses if window_start <= e.occurred_on <= today]
    if recent:
        return round_money(sum(e.amount for e in recent) / lookback_months)

    oldest = min(e.occurred_on for e in expenses)
    span_days = days_between(oldest, today)
    months = max(1, -(-span_days // 30))
    return round_money(sum(e.amount for e in expenses) / months)


def project_cash_flow(
    start: date,
    months: int,
    monthly_salary: Number,
    average_expenses: Number,
    recurring_income: Number = 0,
    recurring_expense: Number = 0,
    plans: Iterable[InvestmentPlan] = (),
    expected_annual_return_percent: Number = 0,
    invested_to_date: Number = 0,
) -> list[CashFlowPoint]:
    """
    Project cash flow for `months` months from the month of `start`.

    Args:
        start: Any day in the first projected month
        months: Number of months; nothing is produced for months <= 0
        monthly_salary: Current salary
        average_expenses: Typical monthly spend outside recurring rules
        recurring_income: Monthly income from recurring rules
        recurring_expense: Monthly expense from recurring rules
        plans: Active investment plans funding the monthly investment
        expected_annual_return_percent: Growth assumed on investments
            (negative values are treated as 0)
        invested_to_date: Contributions already made; seeds the portfolio

    Returns:
        One CashFlowPoint per month
    """
    plans = list(plans)
    income = float(monthly_salary) + float(recurring_income)
    expenses = float(average_expenses) + float(recurring_expense)
    base_contribution = sum(float(p.monthly_contribution) for p in plans)
    increase = weighted_annual_increase(plans)

    investments = project(
        base_contribution,
        monthly_rate(max(0.0, float(expected_annual_return_percent))),
        months,
        increase,
        sample="monthly",
        initial_value=invested_to_date,
    )

    step_up = 1 + increase / 100

    points = []
    cumulative = 0.0
    for offset, projected in enumerate(investments):
        contribution = base_contribution * step_up ** (offset // 12)

        net = income - expenses - contribution
        cumulative += net
        points.append(
            CashFlowPoint(
                month=month_key(add_months(start, offset)),
                income=round_money(income),
                expenses=round_money(expenses),
                investments=round_money(contribution),
                net=round_money(net),
                cumulative_balance=round_money(cumulative),
                total_contributed=projected.invested,
                investment_value=projected.value,
            )
        )

    return points
