"""
Audit Logger

DESIGN DECISION: Every ledger write the engine makes on its own is logged.
This provides:
1. Traceability from an entry back to the rule, salary or plan behind it
2. Debugging capability for skipped and failed rules
3. A per-run view through correlation IDs

The audit logger:
- Always writes a structured log line first
- Gracefully handles failures (an audit storage error never fails the
  ledger write it describes)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fincore.config import LoggingSettings, get_settings
from fincore.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fincore.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog for the process.

    Call once at startup. JSON output by default; set
    FINCORE_LOG_JSON_OUTPUT=false for console rendering.
    """
    settings = settings or get_settings().logging

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.level),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_recurring_processed(
        self,
        owner_id: UUID,
        rule_id: UUID,
        entry_id: UUID,
        occurred_on: date,
        next_due_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a recurring rule turned into a ledger entry."""
        return self.log(AuditEventBuilder.recurring_processed(
            owner_id=owner_id,
            rule_id=rule_id,
            entry_id=entry_id,
            occurred_on=occurred_on,
            next_due_on=next_due_on,
            correlation_id=correlation_id,
        ))

    def log_recurring_skipped(
        self,
        owner_id: UUID,
        rule_id: UUID,
        reason: str,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a recurring rule left untouched because of bad input."""
        return self.log(AuditEventBuilder.recurring_skipped(
            owner_id=owner_id,
            rule_id=rule_id,
            reason=reason,
            occurred_on=occurred_on,
            correlation_id=correlation_id,
        ))

    def log_recurring_failed(
        self,
        owner_id: UUID,
        rule_id: UUID,
        error_message: str,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a recurring rule whose writes were rolled back."""
        return self.log(AuditEventBuilder.recurring_failed(
            owner_id=owner_id,
            rule_id=rule_id,
            error_message=error_message,
            occurred_on=occurred_on,
            correlation_id=correlation_id,
        ))

    def log_salary_credited(
        self,
        owner_id: UUID,
        entry_id: UUID,
        amount: Decimal,
        occurred_on: date,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log salary credit."""
        return self.log(AuditEventBuilder.salary_credited(
            owner_id=owner_id,
            entry_id=entry_id,
            amount=amount,
            occurred_on=occurred_on,
            correlation_id=correlation_id,
        ))

    def log_investment_made(
        self,
        owner_id: UUID,
        plan_id: UUID,
        plan_name: str,
        entry_id: UUID,
        amount: Decimal,
        is_monthly: bool,
    ) -> bool:
        return self.log(AuditEventBuilder.investment_made(
            owner_id=owner_id,
            plan_id=plan_id,
            plan_name=plan_name,
            entry_id=entry_id,
            amount=amount,
            is_monthly=is_monthly,
        ))

    def log_investment_closed(
        self,
        owner_id: UUID,
        plan_id: UUID,
        plan_name: str,
        entry_id: Optional[UUID],
        total_invested: float,
        maturity_amount: float,
    ) -> bool:
        return self.log(AuditEventBuilder.investment_closed(
            owner_id=owner_id,
            plan_id=plan_id,
            plan_name=plan_name,
            entry_id=entry_id,
            total_invested=total_invested,
            maturity_amount=maturity_amount,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        owner_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log an error."""
        return self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a materializer run and pass it to
    every event the run emits.
    """
    return uuid4()
