"""
Result Models

Everything the engine hands back to a caller: projection series, goal
evaluations, budget allocations, net worth figures and the report of a
materializer run.

All monetary figures here are floats rounded to 2 decimal places, because
they are computed values meant for display, not ledger amounts.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fincore.models.ledger import BudgetBucket, GoalStatus


# =============================================================================
# PROJECTIONS
# =============================================================================

class ProjectionPoint(BaseModel):
    """One sample of a SIP projection."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, description="1-indexed month of the projection")
    year: int = Field(..., ge=1, description="1-indexed projection year the month falls in")
    invested: float = Field(..., description="Contributions so far, no growth")
    value: float = Field(..., description="Portfolio value after growth")
    interest: float = Field(..., description="value - invested")


class ProjectionRange(BaseModel):
    """Projections at the pessimistic and optimistic return bounds."""
    model_config = ConfigDict(frozen=True)

    min: list[ProjectionPoint] = Field(default_factory=list)
    max: list[ProjectionPoint] = Field(default_factory=list)

    @property
    def final_min(self) -> float:
        return self.min[-1].value if self.min else 0.0

    @property
    def final_max(self) -> float:
        return self.max[-1].value if self.max else 0.0

    def midpoint(self) -> float:
        """Single-figure aggregate: the midpoint of the two final values."""
        return round((self.final_min + self.final_max) / 2, 2)


class CashFlowPoint(BaseModel):
    """One month of a forward cash-flow projection."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="YYYY-MM")
    income: float
    expenses: float
    investments: float
    net: float
    cumulative_balance: float
    total_contributed: float
    investment_value: float


# =============================================================================
# GOALS
# =============================================================================

class GoalEvaluation(BaseModel):
    """Progress of a goal under the current contribution rate."""
    model_config = ConfigDict(frozen=True)

    goal_id: UUID
    months_remaining: int = Field(..., ge=0)
    current_value: float
    projected_value: float
    progress_percent: float = Field(..., ge=0.0, le=100.0)
    required_sip: float = Field(..., ge=0.0)
    status: GoalStatus


# =============================================================================
# BUDGET
# =============================================================================

class BucketAllocation(BaseModel):
    """Budget vs actual for one bucket."""
    model_config = ConfigDict(frozen=True)

    bucket: BudgetBucket
    budget: float
    actual: float
    percentage: float = Field(..., description="actual as a percent of income")
    remaining: float


class BudgetAllocation(BaseModel):
    """Budget vs actual for all three buckets."""
    model_config = ConfigDict(frozen=True)

    income_total: float
    needs: BucketAllocation
    wants: BucketAllocation
    savings: BucketAllocation

    @property
    def buckets(self) -> list[BucketAllocation]:
        return [self.needs, self.wants, self.savings]

    @property
    def total_spent(self) -> float:
        return round(sum(b.actual for b in self.buckets), 2)

    def for_bucket(self, bucket: BudgetBucket) -> BucketAllocation:
        return getattr(self, bucket.value)


class MonthlySummary(BaseModel):
    """Income, spend and budget position for one calendar month."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="YYYY-MM")
    total_income: float
    total_expense: float
    net_savings: float
    category_breakdown: dict[str, float] = Field(default_factory=dict)
    allocation: BudgetAllocation
    transaction_count: int = Field(..., ge=0)


# =============================================================================
# NET WORTH
# =============================================================================

class NetWorth(BaseModel):
    """
    Net worth bounds.

    min and max are currently equal: both are the bank balance plus
    realized plan contributions, with no forward growth applied.
    """
    model_config = ConfigDict(frozen=True)

    bank_balance: float
    investments: float
    min: float
    max: float


class NetWorthPoint(BaseModel):
    """One month of the net worth timeline."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="YYYY-MM")
    year: int
    cash: float
    investments: float
    net_worth: float


# =============================================================================
# MATERIALIZER RUN
# =============================================================================

class OutcomeStatus(str, Enum):
    """What happened to one unit of work in a materializer run."""
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"
    CREDITED = "credited"
    ALREADY_CREDITED = "already_credited"
    NOT_DUE = "not_due"
    NO_SALARY = "no_salary"


class RuleOutcome(BaseModel):
    """Result of processing one recurring rule."""
    model_config = ConfigDict(frozen=True)

    rule_id: UUID
    owner_id: UUID
    status: OutcomeStatus
    entry_id: Optional[UUID] = None
    next_due_on: Optional[date] = None
    reason: Optional[str] = None


class SalaryOutcome(BaseModel):
    """Result of the salary check for one owner."""
    model_config = ConfigDict(frozen=True)

    owner_id: UUID
    status: OutcomeStatus
    entry_id: Optional[UUID] = None
    reason: Optional[str] = None


class MaterializationReport(BaseModel):
    """Everything one run of the obligation materializer did."""

    run_id: UUID
    run_date: date
    rules: list[RuleOutcome] = Field(default_factory=list)
    salaries: list[SalaryOutcome] = Field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return sum(1 for o in self.rules if o.status == OutcomeStatus.PROCESSED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for o in self.rules if o.status == OutcomeStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        failed_rules = sum(1 for o in self.rules if o.status == OutcomeStatus.FAILED)
        failed_salaries = sum(1 for o in self.salaries if o.status == OutcomeStatus.FAILED)
        return failed_rules + failed_salaries

    @property
    def credited_count(self) -> int:
        return sum(1 for o in self.salaries if o.status == OutcomeStatus.CREDITED)

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0


# =============================================================================
# PLAN CLOSURE
# =============================================================================

class PlanClosure(BaseModel):
    """Summary returned when an investment plan is closed."""
    model_config = ConfigDict(frozen=True)

    plan_id: UUID
    entry_id: Optional[UUID] = Field(
        default=None,
        description="Maturity entry; None when nothing was paid out"
    )
    total_invested: float
    maturity_amount: float
    returns: float
    return_percent: float
