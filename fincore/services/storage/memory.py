"""
In-Memory Storage Implementation

DESIGN DECISION: The engine ships one concrete storage backend, held
entirely in dictionaries. It is the reference collaborator for tests and
for callers that load records themselves and only want the calculations.

TRADEOFFS:
- Nothing survives the process (that is the caller's persistence layer's job)
- transaction() snapshots every table, fine for personal-scale data

Records are frozen pydantic models, so a snapshot only has to copy the
dictionaries, never the records inside them.
"""

from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional
from uuid import UUID

import structlog

from fincore.models.audit import AuditEvent
from fincore.models.ledger import (
    BudgetBucket,
    BudgetRule,
    EntryKind,
    Goal,
    InvestmentPlan,
    LedgerEntry,
    PlanStatus,
    RecurringRule,
    SalaryRecord,
)
from fincore.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)

logger = structlog.get_logger(__name__)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Dictionary-backed implementation of LedgerStorageInterface.

    Besides the interface methods it offers add_* helpers for seeding
    records, which a real backend would receive from the API layer.
    """

    _TABLES = (
        "_entries",
        "_rules",
        "_salaries",
        "_plans",
        "_goals",
        "_budget_rules",
        "_classification",
    )

    def __init__(
        self,
        classification: Optional[dict[str, BudgetBucket]] = None,
    ):
        self._entries: dict[UUID, LedgerEntry] = {}
        self._rules: dict[UUID, RecurringRule] = {}
        self._salaries: dict[UUID, SalaryRecord] = {}
        self._plans: dict[UUID, InvestmentPlan] = {}
        self._goals: dict[UUID, Goal] = {}
        self._budget_rules: dict[UUID, BudgetRule] = {}
        self._classification: dict[str, BudgetBucket] = dict(classification or {})
        self._owners: set[UUID] = set()
        self._depth = 0

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        self._owners.add(entry.owner_id)
        return self.create_ledger_entry(entry)

    def add_rule(self, rule: RecurringRule) -> RecurringRule:
        self._owners.add(rule.owner_id)
        self._rules[rule.id] = rule
        return rule

    def add_salary(self, salary: SalaryRecord) -> SalaryRecord:
        self._owners.add(salary.owner_id)
        self._salaries[salary.id] = salary
        return salary

    def add_plan(self, plan: InvestmentPlan) -> InvestmentPlan:
        self._owners.add(plan.owner_id)
        self._plans[plan.id] = plan
        return plan

    def add_goal(self, goal: Goal) -> Goal:
        self._owners.add(goal.owner_id)
        self._goals[goal.id] = goal
        return goal

    def set_budget_rule(self, owner_id: UUID, rule: BudgetRule) -> None:
        self._owners.add(owner_id)
        self._budget_rules[owner_id] = rule

    def get_recurring_rule(self, rule_id: UUID) -> Optional[RecurringRule]:
        return self._rules.get(rule_id)

    def find_goals(self, owner_id: UUID) -> list[Goal]:
        return [g for g in self._goals.values() if g.owner_id == owner_id]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_due_recurring_rules(self, as_of: date) -> list[RecurringRule]:
        due = [
            r for r in self._rules.values()
            if r.active and r.next_due_on <= as_of
        ]
        return sorted(due, key=lambda r: (r.next_due_on, str(r.id)))

    def find_owner_ids(self) -> list[UUID]:
        return sorted(self._owners, key=str)

    def find_current_salary(self, owner_id: UUID) -> Optional[SalaryRecord]:
        history = [s for s in self._salaries.values() if s.owner_id == owner_id]
        if not history:
            return None
        return max(history, key=lambda s: s.effective_on)

    def find_ledger_entries(
        self,
        owner_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LedgerEntry]:
        entries = []
        for entry in self._entries.values():
            if entry.owner_id != owner_id:
                continue
            if date_from and entry.occurred_on < date_from:
                continue
            if date_to and entry.occurred_on > date_to:
                continue
            entries.append(entry)
        return sorted(entries, key=lambda e: (e.occurred_on, e.created_at))

    def find_active_investment_plans(self, owner_id: UUID) -> list[InvestmentPlan]:
        return [
            p for p in self._plans.values()
            if p.owner_id == owner_id and p.status == PlanStatus.ACTIVE
        ]

    def get_investment_plan(self, plan_id: UUID) -> Optional[InvestmentPlan]:
        return self._plans.get(plan_id)

    def find_plan_contributions(self, plan_id: UUID) -> list[LedgerEntry]:
        contributions = [
            e for e in self._entries.values()
            if e.plan_id == plan_id and e.kind == EntryKind.INVESTMENT
        ]
        return sorted(contributions, key=lambda e: (e.occurred_on, e.created_at))

    def find_budget_rule(self, owner_id: UUID) -> Optional[BudgetRule]:
        return self._budget_rules.get(owner_id)

    def find_category_classification(self) -> dict[str, BudgetBucket]:
        return dict(self._classification)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry:
        if entry.id in self._entries:
            raise DuplicateError(f"Ledger entry already exists: {entry.id}")
        self._entries[entry.id] = entry
        self._owners.add(entry.owner_id)
        return entry

    def update_recurring_rule(self, rule: RecurringRule) -> RecurringRule:
        if rule.id not in self._rules:
            raise NotFoundError(f"Recurring rule not found: {rule.id}")
        self._rules[rule.id] = rule
        return rule

    def update_investment_plan(self, plan: InvestmentPlan) -> InvestmentPlan:
        if plan.id not in self._plans:
            raise NotFoundError(f"Investment plan not found: {plan.id}")
        self._plans[plan.id] = plan
        return plan

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Nested blocks join the outermost one.
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = {name: dict(getattr(self, name)) for name in self._TABLES}
        owners = set(self._owners)
        self._depth = 1
        try:
            yield
        except BaseException:
            for name, table in snapshot.items():
                setattr(self, name, table)
            self._owners = owners
            logger.warning("transaction_rolled_back")
            raise
        finally:
            self._depth = 0


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_owner(self, owner_id: UUID) -> list[AuditEvent]:
        events = [e for e in self._events if e.owner_id == owner_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
