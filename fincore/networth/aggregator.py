"""
Net Worth Aggregation

Nets ledger entries into a bank balance and adds realized investment
contributions to get net worth, optionally as a monthly timeline.

DESIGN DECISION: min and max net worth are currently the same number,
bank balance plus contributions actually made, with no growth applied.
The two bounds are kept in the result so a return-sensitive model can
be added later without changing callers.

Transfer entries are ignored everywhere in this module until
multi-account support exists.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from fincore.models.ledger import EntryKind, InvestmentPlan, LedgerEntry, PlanStatus
from fincore.models.reports import NetWorth, NetWorthPoint, ProjectionPoint
from fincore.projections.sip import round_money
from fincore.timemath import elapsed_average_months, iter_month_starts, month_key

Number = Union[int, float, Decimal]


def _signed_amount(entry: LedgerEntry) -> Decimal:
    """Effect of an entry on the bank balance."""
    if entry.kind == EntryKind.INCOME:
        return entry.amount
    if entry.kind in (EntryKind.EXPENSE, EntryKind.INVESTMENT):
        return -entry.amount
    return Decimal("0")


def bank_balance(entries: Iterable[LedgerEntry]) -> float:
    """Income minus expenses minus investments."""
    return round_money(sum((_signed_amount(e) for e in entries), Decimal("0")))


def realized_contributions(plans: Iterable[InvestmentPlan], as_of: date) -> float:
    """
    Contributions active plans have made so far.

    Each plan contributes its monthly amount once per whole average-length
    month since it started. Growth is not applied.
    """
    total = Decimal("0")
    for plan in plans:
        if plan.status != PlanStatus.ACTIVE:
            continue
        total += plan.monthly_contribution * elapsed_average_months(plan.start_on, as_of)
    return round_money(total)


def net_worth(
    entries: Iterable[LedgerEntry],
    active_plan_investment_total: Number,
) -> NetWorth:
    """Bank balance plus realized plan contributions, as a (collapsed) min/max pair."""
    balance = bank_balance(entries)
    investments = round_money(active_plan_investment_total)
    total = round_money(balance + investments)
    return NetWorth(
        bank_balance=balance,
        investments=investments,
        min=total,
        max=total,
    )


def monthly_cash_flows(entries: Iterable[LedgerEntry]) -> dict[str, float]:
    """Net cash movement per "YYYY-MM", in month order."""
    flows: dict[str, Decimal] = defaultdict(Decimal)
    for entry in entries:
        flows[month_key(entry.occurred_on)] += _signed_amount(entry)
    return {key: round_money(flows[key]) for key in sorted(flows)}


def projection_by_calendar_year(
    points: Iterable[ProjectionPoint],
    start_year: int,
) -> dict[int, float]:
    """
    Map a projection onto calendar years.

    Projection year 1 is start_year. Each calendar year gets the value of
    the last sample that falls in it.
    """
    by_year: dict[int, float] = {}
    for point in points:
        by_year[start_year + point.year - 1] = point.value
    return by_year


def timeline(
    entries: Iterable[LedgerEntry],
    investment_values_by_year: Mapping[int, Number],
    starting_balance: Number = 0,
    through: Optional[date] = None,
) -> list[NetWorthPoint]:
    """
    Month-by-month net worth.

    Covers every month from the earliest entry through `through` (or the
    latest entry), including months without entries. Cash accumulates
    month over month from starting_balance; investments are looked up by
    calendar year and count as 0 for years missing from the mapping.
    """
    entries = list(entries)
    if not entries:
        return []

    first = min(e.occurred_on for e in entries)
    last = through or max(e.occurred_on for e in entries)
    flows = monthly_cash_flows(entries)

    points = []
    cash = float(starting_balance)
    for start in iter_month_starts(first, last):
        key = month_key(start)
        cash += flows.get(key, 0.0)
        investments = float(investment_values_by_year.get(start.year, 0.0))
        points.append(
            NetWorthPoint(
                month=key,
                year=start.year,
                cash=round_money(cash),
                investments=round_money(investments),
                net_worth=round_money(cash + investments),
            )
        )
    return points
