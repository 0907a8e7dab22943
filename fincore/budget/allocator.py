"""
Budget Allocation

Compares actual spend per bucket with a percentage-of-income rule.

For each bucket:
    budget     = percent / 100 * income_total
    actual     = expenses classified into the bucket
                 (investment entries always count as savings)
    percentage = actual / income_total * 100, or 0 when there is no income
    remaining  = budget - actual

DESIGN DECISION: Income classified as savings (money coming back from a
savings pot, internal transfers) is removed before income_total is
computed. Counting it as income would inflate every budget.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Union

from fincore.models.ledger import BudgetBucket, BudgetRule, EntryKind, LedgerEntry
from fincore.models.reports import BucketAllocation, BudgetAllocation, MonthlySummary
from fincore.projections.sip import round_money
from fincore.timemath import month_end, month_key, month_start

Classify = Callable[[str], BudgetBucket]
Number = Union[int, float, Decimal]


def income_total(
    entries: Iterable[LedgerEntry],
    classify: Classify,
    exclude_savings_income: bool = True,
) -> float:
    """Sum of income entries, optionally leaving out savings-classified ones."""
    total = Decimal("0")
    for entry in entries:
        if entry.kind != EntryKind.INCOME:
            continue
        if exclude_savings_income and classify(entry.category) == BudgetBucket.SAVINGS:
            continue
        total += entry.amount
    return round_money(total)


def _bucket_of(entry: LedgerEntry, classify: Classify):
    if entry.kind == EntryKind.INVESTMENT:
        return BudgetBucket.SAVINGS
    if entry.kind == EntryKind.EXPENSE:
        return classify(entry.category)
    return None


def allocate(
    expense_entries: Iterable[LedgerEntry],
    income_total: Number,
    rule: BudgetRule,
    classify: Classify,
) -> BudgetAllocation:
    """
    Budget vs actual per bucket.

    Income and transfer entries in expense_entries are ignored.
    """
    actuals = {bucket: Decimal("0") for bucket in BudgetBucket}
    for entry in expense_entries:
        bucket = _bucket_of(entry, classify)
        if bucket is not None:
            actuals[bucket] += entry.amount

    income = float(income_total)
    allocations = {}
    for bucket in BudgetBucket:
        budget = rule.percent_for(bucket) / 100 * income
        actual = float(actuals[bucket])
        percentage = actual / income * 100 if income else 0.0
        allocations[bucket.value] = BucketAllocation(
            bucket=bucket,
            budget=round_money(budget),
            actual=round_money(actual),
            percentage=round_money(percentage),
            remaining=round_money(budget - actual),
        )

    return BudgetAllocation(income_total=round_money(income), **allocations)


def analyze(
    entries: Iterable[LedgerEntry],
    rule: BudgetRule,
    classify: Classify,
    exclude_savings_income: bool = True,
) -> BudgetAllocation:
    """Allocate a mixed list of entries: income is totalled first, then spend is bucketed."""
    entries = list(entries)
    total = income_total(entries, classify, exclude_savings_income)
    return allocate(entries, total, rule, classify)


def summarize_month(
    entries: Iterable[LedgerEntry],
    month: date,
    rule: BudgetRule,
    classify: Classify,
) -> MonthlySummary:
    """
    Income, spend and budget position for the calendar month containing `month`.

    Entries outside that month are ignored.
    """
    first, last = month_start(month), month_end(month)
    in_month = [e for e in entries if first <= e.occurred_on <= last]

    total_income = sum(
        (e.amount for e in in_month if e.kind == EntryKind.INCOME), Decimal("0")
    )
    expenses = [e for e in in_month if e.kind == EntryKind.EXPENSE]
    total_expense = sum((e.amount for e in expenses), Decimal("0"))

    breakdown: dict[str, Decimal] = {}
    for entry in expenses:
        breakdown[entry.category] = breakdown.get(entry.category, Decimal("0")) + entry.amount

    return MonthlySummary(
        month=month_key(first),
        total_income=round_money(total_income),
        total_expense=round_money(total_expense),
        net_savings=round_money(total_income - total_expense),
        category_breakdown={k: round_money(v) for k, v in breakdown.items()},
        allocation=analyze(in_month, rule, classify),
        transaction_count=len(in_month),
    )
