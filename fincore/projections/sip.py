"""
SIP Projection

Simulates a monthly contribution stream compounding monthly, with an
optional yearly step-up of the contribution, and solves the inverse
problem: the monthly contribution needed to reach a target.

DESIGN DECISION: Every function here is pure. Callers pass the numbers
in, get numbers (or ProjectionPoints) back, and nothing is read from
storage or settings.

The monthly rate is derived in exactly one place, monthly_rate(). The
plan's compounding frequency is accepted there but does not change the
result: contributions are monthly, so growth is modelled monthly.
"""

from decimal import Decimal
from typing import Literal, Optional, Union

from fincore.models.ledger import CompoundingFrequency
from fincore.models.reports import ProjectionPoint, ProjectionRange

Number = Union[int, float, Decimal]

SampleMode = Literal["monthly", "yearly"]
ContributionTiming = Literal["start", "end"]


def round_money(value: Number) -> float:
    """Round a computed amount to 2 decimal places for display."""
    return round(float(value), 2)


def monthly_rate(
    annual_return_percent: Number,
    compounding: CompoundingFrequency = CompoundingFrequency.MONTHLY,
) -> float:
    """
    Monthly growth rate for an annual return percentage.

    Always annual / 100 / 12, whatever the stated compounding.
    """
    return float(annual_return_percent) / 100 / 12


def _contribution_year(month: int) -> int:
    """0-indexed contribution year of a 1-indexed month (months 1-12 -> 0)."""
    return (month - 1) // 12


def project(
    monthly_contribution: Number,
    monthly_return_rate: float,
    months: int,
    annual_increase_percent: Number = 0.0,
    *,
    sample: SampleMode = "monthly",
    initial_value: Number = 0.0,
    timing: ContributionTiming = "start",
) -> list[ProjectionPoint]:
    """
    Run the month-by-month accumulation.

    Month loop (1-indexed):
    1. From month 13 on, every 12 months, grow the contribution by
       annual_increase_percent.
    2. timing="start": contribute, then apply a month of growth.
       timing="end": apply a month of growth, then contribute.

    Args:
        monthly_contribution: Contribution in the first year
        monthly_return_rate: Growth per month, e.g. 0.01 for 1%
        months: Horizon; nothing is produced for months <= 0
        annual_increase_percent: Yearly step-up of the contribution
        sample: "monthly" records every month; "yearly" records every
            12th month and the final month
        initial_value: Amount already invested at month 0; it grows with
            the portfolio and counts as invested
        timing: When in the month the contribution lands

    Returns:
        ProjectionPoints with values rounded to 2 decimal places
    """
    contribution = float(monthly_contribution)
    step_up = 1 + float(annual_increase_percent) / 100
    growth = 1 + float(monthly_return_rate)
    invested = float(initial_value)
    value = float(initial_value)

    points: list[ProjectionPoint] = []
    for month in range(1, months + 1):
        if month > 1 and (month - 1) % 12 == 0:
            contribution *= step_up

        if timing == "start":
            value = (value + contribution) * growth
        else:
            value = value * growth + contribution
        invested += contribution

        if sample == "monthly" or month % 12 == 0 or month == months:
            points.append(
                ProjectionPoint(
                    month=month,
                    year=_contribution_year(month) + 1,
                    invested=round_money(invested),
                    value=round_money(value),
                    interest=round_money(value - invested),
                )
            )

    return points


def project_range(
    monthly_contribution: Number,
    annual_return_min: Number,
    annual_return_max: Number,
    months: int,
    annual_increase_percent: Number = 0.0,
    *,
    compounding: CompoundingFrequency = CompoundingFrequency.MONTHLY,
    sample: SampleMode = "yearly",
) -> ProjectionRange:
    """
    Project at both return bounds.

    The two series are reported side by side, never averaged; call
    midpoint() on the result when a single figure is wanted.
    """
    return ProjectionRange(
        min=project(
            monthly_contribution,
            monthly_rate(annual_return_min, compounding),
            months,
            annual_increase_percent,
            sample=sample,
        ),
        max=project(
            monthly_contribution,
            monthly_rate(annual_return_max, compounding),
            months,
            annual_increase_percent,
            sample=sample,
        ),
    )


def final_value(points: list[ProjectionPoint], default: float = 0.0) -> float:
    """Value at the end of a projection, or default for an empty one."""
    return points[-1].value if points else default


def future_value_factor(
    months: int,
    rate_per_month: float,
    annual_increase_percent: Number = 0.0,
) -> float:
    """
    Sum of compounded growth of a unit contribution stream.

        F = sum over k in [0, months) of
            (1 + increase)^floor(k / 12) * (1 + rate)^(months - 1 - k)

    A contribution of 1 at the end of every month (stepped up yearly)
    is worth F after `months` months.
    """
    increase = float(annual_increase_percent) / 100
    factor = 0.0
    for k in range(months):
        growth_multiplier = (1 + increase) ** (k // 12)
        factor += growth_multiplier * (1 + rate_per_month) ** (months - 1 - k)
    return factor


def solve_required_monthly_contribution(
    target_amount: Number,
    months_remaining: int,
    annual_return_percent: Number,
    annual_increase_percent: Number = 0.0,
    compounding: Optional[CompoundingFrequency] = None,
) -> float:
    """
    First-year monthly contribution needed to reach target_amount.

    Returns 0 when months_remaining <= 0: the target date has passed and
    the figure no longer applies. Never raises on degenerate input.
    """
    if months_remaining <= 0:
        return 0.0

    rate = monthly_rate(
        annual_return_percent,
        compounding or CompoundingFrequency.MONTHLY,
    )
    factor = future_value_factor(months_remaining, rate, annual_increase_percent)
    target = float(target_amount)

    if factor == 0:
        return round_money(target / max(months_remaining, 1))

    return round_money(target / factor)
