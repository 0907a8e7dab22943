"""
Core Records for Personal Finance Core

These models define the records the engine reads and writes.
They are designed to:
1. Enforce boundary invariants at construction time
2. Be immutable once built (updates go through model_copy)
3. Be serializable for storage and logging

DESIGN DECISION: Money held on records is Decimal and always positive.
Direction lives in EntryKind, never in the sign of the amount.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryKind(str, Enum):
    """Direction of a ledger entry."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    TRANSFER = "transfer"  # ignored by balances until multi-account support


class Frequency(str, Enum):
    """Known recurrence frequencies."""
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PlanStatus(str, Enum):
    """Investment plan lifecycle."""
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"  # closed / matured


class CompoundingFrequency(str, Enum):
    """
    Stated compounding of an investment plan.

    Descriptive only: projections always compound monthly because
    contributions are monthly. See projections.sip.monthly_rate.
    """
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class GoalStatus(str, Enum):
    """Derived goal classification, recomputed on every evaluation."""
    ON_TRACK = "on_track"
    BEHIND = "behind"
    COMPLETED = "completed"


class BudgetBucket(str, Enum):
    """Budget buckets of a percentage-of-income rule."""
    NEEDS = "needs"
    WANTS = "wants"
    SAVINGS = "savings"


# =============================================================================
# LEDGER
# =============================================================================

class LedgerPayload(BaseModel):
    """
    The ledger fields a recurring rule stamps out on every occurrence.

    Stored on the rule as a JSON string. The legacy field names `type`
    and `description` are accepted for `kind` and `note`.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount per occurrence"
    )
    kind: EntryKind = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=255,
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
        validation_alias=AliasChoices("note", "description"),
    )


class LedgerEntry(BaseModel):
    """
    A single money movement.

    Created by the materializer, by plan flows, or by manual entry
    upstream. Never edited by the engine once created.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID"
    )
    owner_id: UUID
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Always positive; direction is carried by kind"
    )
    kind: EntryKind
    category: str = Field(
        ...,
        min_length=1,
        max_length=255,
    )
    occurred_on: date
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    # Provenance
    recurring_rule_id: Optional[UUID] = None
    plan_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=_utcnow)


class RecurringRule(BaseModel):
    """
    A template that periodically materializes into a ledger entry.

    `next_due_on` is only ever moved by the materializer. Paused rules
    are deactivated, not deleted.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    payload_template: str = Field(
        ...,
        min_length=1,
        description="JSON-serialized LedgerPayload"
    )
    frequency: str = Field(
        ...,
        description="One of Frequency; kept as text so legacy values still load"
    )
    next_due_on: date
    active: bool = True

    @field_validator('frequency', mode='before')
    @classmethod
    def normalize_frequency(cls, v) -> str:
        if isinstance(v, Frequency):
            return v.value
        if not isinstance(v, str):
            raise ValueError("frequency must be a string")
        return v.strip().lower()


class SalaryRecord(BaseModel):
    """
    One entry in an owner's append-only salary history.

    The current salary is the record with the latest effective_on.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    amount: Decimal = Field(..., gt=0)
    effective_on: date


# =============================================================================
# PLANNING
# =============================================================================

class InvestmentPlan(BaseModel):
    """A systematic investment plan (SIP)."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    name: str = Field(
        default="Investment plan",
        min_length=1,
        max_length=255,
    )
    goal_id: Optional[UUID] = None
    monthly_contribution: Decimal = Field(..., gt=0)
    expected_return_min: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Pessimistic annual return, percent"
    )
    expected_return_max: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Optimistic annual return, percent"
    )
    compounding: CompoundingFrequency = CompoundingFrequency.MONTHLY
    annual_increase_percent: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
    )
    start_on: date
    end_on: Optional[date] = None
    status: PlanStatus = PlanStatus.ACTIVE

    @model_validator(mode='after')
    def validate_ranges(self) -> 'InvestmentPlan':
        """Return bounds and dates must be ordered."""
        if self.expected_return_max < self.expected_return_min:
            raise ValueError(
                "Expected return max must be greater than or equal to expected return min"
            )
        if self.end_on and self.end_on < self.start_on:
            raise ValueError("Plan end date cannot be before start date")
        return self

    @property
    def midpoint_return(self) -> float:
        return (self.expected_return_min + self.expected_return_max) / 2


class Goal(BaseModel):
    """A savings target. Its status is derived by the goal evaluator."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., gt=0)
    target_on: date
    status: GoalStatus = GoalStatus.ON_TRACK


class BudgetRule(BaseModel):
    """
    Percentage-of-income split across needs, wants and savings.

    The three percentages must sum to 100 (within 0.01).
    """
    model_config = ConfigDict(frozen=True)

    needs_percent: float = Field(..., ge=0.0, le=100.0)
    wants_percent: float = Field(..., ge=0.0, le=100.0)
    savings_percent: float = Field(..., ge=0.0, le=100.0)

    @model_validator(mode='after')
    def validate_total(self) -> 'BudgetRule':
        total = self.needs_percent + self.wants_percent + self.savings_percent
        if abs(total - 100.0) >= 0.01:
            raise ValueError(f"Needs + Wants + Savings must equal 100%, got {total}")
        return self

    @classmethod
    def default(cls) -> 'BudgetRule':
        """The classic 50/30/20 rule."""
        return cls(needs_percent=50.0, wants_percent=30.0, savings_percent=20.0)

    def percent_for(self, bucket: BudgetBucket) -> float:
        return {
            BudgetBucket.NEEDS: self.needs_percent,
            BudgetBucket.WANTS: self.wants_percent,
            BudgetBucket.SAVINGS: self.savings_percent,
        }[bucket]
