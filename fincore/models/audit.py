"""
Audit Models for Personal Finance Core

Every ledger write the engine makes on its own (recurring rules, salary
credits, plan contributions and closures) is recorded as an audit event.
This provides:
1. Traceability from a ledger entry back to the rule or plan that made it
2. A record of rules that were skipped or failed, and why
3. The ability to reconstruct what a given materializer run did

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Recurring rules
    RECURRING_PROCESSED = "recurring_processed"
    RECURRING_SKIPPED = "recurring_skipped"
    RECURRING_FAILED = "recurring_failed"

    # Salary
    SALARY_CREDITED = "salary_credited"

    # Investment plans
    INVESTMENT_MADE = "investment_made"
    INVESTMENT_CLOSED = "investment_closed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    `details` must stay JSON-serializable.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Whose data this is about
    owner_id: Optional[UUID] = Field(
        default=None,
        description="Owner of the records involved"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'recurring_rule', 'salary', 'investment_plan')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one materializer run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": str(self.owner_id) if self.owner_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.recurring_processed(owner_id, rule_id, entry_id, today)
        event = AuditEventBuilder.salary_credited(owner_id, entry_id, amount, today)
    """

    @staticmethod
    def recurring_processed(
        owner_id: UUID,
        rule_id: UUID,
        entry_id: UUID,
        occurred_on: date,
        next_due_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_PROCESSED,
            owner_id=owner_id,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description=f"Recurring rule materialized on {occurred_on.isoformat()}",
            details={
                "rule_id": str(rule_id),
                "entry_id": str(entry_id),
                "date": occurred_on.isoformat(),
                "next_due_on": next_due_on.isoformat(),
            },
        )

    @staticmethod
    def recurring_skipped(
        owner_id: UUID,
        rule_id: UUID,
        reason: str,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_SKIPPED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description="Recurring rule skipped; schedule left unchanged",
            details={
                "rule_id": str(rule_id),
                "date": occurred_on.isoformat(),
                "reason": reason,
            },
        )

    @staticmethod
    def recurring_failed(
        owner_id: UUID,
        rule_id: UUID,
        error_message: str,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_FAILED,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            entity_type="recurring_rule",
            entity_id=rule_id,
            correlation_id=correlation_id,
            description="Recurring rule could not be materialized",
            error_message=error_message,
            details={
                "rule_id": str(rule_id),
                "date": occurred_on.isoformat(),
            },
        )

    @staticmethod
    def salary_credited(
        owner_id: UUID,
        entry_id: UUID,
        amount: Decimal,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALARY_CREDITED,
            owner_id=owner_id,
            entity_type="salary",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Salary credited: ₹{amount}",
            details={
                "entry_id": str(entry_id),
                "amount": str(amount),
                "date": occurred_on.isoformat(),
            },
        )

    @staticmethod
    def investment_made(
        owner_id: UUID,
        plan_id: UUID,
        plan_name: str,
        entry_id: UUID,
        amount: Decimal,
        is_monthly: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_MADE,
            owner_id=owner_id,
            entity_type="investment_plan",
            entity_id=plan_id,
            description=f"Investment in {plan_name}: ₹{amount}",
            details={
                "plan_id": str(plan_id),
                "plan_name": plan_name,
                "entry_id": str(entry_id),
                "amount": str(amount),
                "is_monthly": is_monthly,
            },
        )

    @staticmethod
    def investment_closed(
        owner_id: UUID,
        plan_id: UUID,
        plan_name: str,
        entry_id: Optional[UUID],
        total_invested: float,
        maturity_amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_CLOSED,
            owner_id=owner_id,
            entity_type="investment_plan",
            entity_id=plan_id,
            description=f"Investment plan closed: {plan_name}",
            details={
                "plan_id": str(plan_id),
                "plan_name": plan_name,
                "entry_id": str(entry_id) if entry_id else None,
                "total_invested": total_invested,
                "maturity_amount": maturity_amount,
                "returns": round(maturity_amount - total_invested, 2),
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        owner_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
