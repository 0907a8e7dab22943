"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a database directly.
Every function that needs records receives a storage collaborator
implementing these interfaces. This allows us to:
1. Back the engine with any relational store (or an ORM) upstream
2. Use in-memory storage for testing
3. Keep calculation code free of connection handling and global clients

The interface is intentionally narrow - only the reads and writes the
engine actually performs.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import ContextManager, Optional
from uuid import UUID

from fincore.models.audit import AuditEvent
from fincore.models.ledger import (
    BudgetBucket,
    BudgetRule,
    InvestmentPlan,
    LedgerEntry,
    RecurringRule,
    SalaryRecord,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the ledger, schedule and planning records.

    Any storage implementation must implement these methods.
    Failures are raised as StorageError (or a subclass).
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_due_recurring_rules(self, as_of: date) -> list[RecurringRule]:
        """
        Active recurring rules whose next due date is on or before as_of.

        Args:
            as_of: The processing date

        Returns:
            Due rules, in a stable order
        """
        pass

    @abstractmethod
    def find_owner_ids(self) -> list[UUID]:
        """All owners the salary job should look at."""
        pass

    @abstractmethod
    def find_current_salary(self, owner_id: UUID) -> Optional[SalaryRecord]:
        """
        The owner's current salary.

        Returns:
            The record with the latest effective_on, or None
        """
        pass

    @abstractmethod
    def find_ledger_entries(
        self,
        owner_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LedgerEntry]:
        """
        Ledger entries of an owner, optionally within an inclusive date range.

        Args:
            owner_id: Whose entries
            date_from: Entries on or after this date
            date_to: Entries on or before this date

        Returns:
            Matching entries ordered by occurred_on
        """
        pass

    @abstractmethod
    def find_active_investment_plans(self, owner_id: UUID) -> list[InvestmentPlan]:
        """Plans of an owner with status active."""
        pass

    @abstractmethod
    def get_investment_plan(self, plan_id: UUID) -> Optional[InvestmentPlan]:
        """A plan by ID, or None."""
        pass

    @abstractmethod
    def find_plan_contributions(self, plan_id: UUID) -> list[LedgerEntry]:
        """Investment-kind ledger entries stamped with this plan."""
        pass

    @abstractmethod
    def find_budget_rule(self, owner_id: UUID) -> Optional[BudgetRule]:
        """The owner's budget rule, or None if they never set one."""
        pass

    @abstractmethod
    def find_category_classification(self) -> dict[str, BudgetBucket]:
        """The category -> budget bucket lookup table."""
        pass

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Persist a new ledger entry.

        Returns:
            The stored entry

        Raises:
            DuplicateError: If an entry with this ID already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def update_recurring_rule(self, rule: RecurringRule) -> RecurringRule:
        """
        Replace a stored recurring rule.

        Raises:
            NotFoundError: If the rule doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def update_investment_plan(self, plan: InvestmentPlan) -> InvestmentPlan:
        """
        Replace a stored investment plan.

        Raises:
            NotFoundError: If the plan doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """
        Group the writes made inside the block into one unit.

        Either every write in the block is kept or, if the block raises,
        none of them are. The exception is re-raised.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_owner(self, owner_id: UUID) -> list[AuditEvent]:
        """All events of an owner in chronological order."""
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one materializer run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
