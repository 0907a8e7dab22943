"""
Main Orchestrator for Personal Finance Core

This module ties together the scheduler, storage and audit trail and
defines the flows that write to the ledger on their own:
1. Daily materialization (due recurring rules -> entries, salary credit)
2. Investment plan contributions and closure

DESIGN DECISION: The orchestrator enforces the boundaries:
- An entry and the schedule change that goes with it are written in one
  storage transaction, or not at all
- A bad rule is skipped or failed on its own; the rest of the batch runs
- Salary is credited at most once per calendar month
- Every write is audited, after it has been committed

Storage errors raised while *reading* the batch propagate to the caller.
The host that schedules the job owns any retry policy.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from fincore.audit import AuditLogger, create_correlation_id
from fincore.config import FinanceSettings, get_settings
from fincore.goals import GoalEvaluator
from fincore.models.ledger import (
    EntryKind,
    InvestmentPlan,
    LedgerEntry,
    PlanStatus,
    RecurringRule,
)
from fincore.models.reports import (
    MaterializationReport,
    OutcomeStatus,
    PlanClosure,
    RuleOutcome,
    SalaryOutcome,
)
from fincore.projections.sip import round_money
from fincore.scheduling import SchedulingError, advance, is_due, parse_payload
from fincore.services.storage import AuditStorageInterface, LedgerStorageInterface
from fincore.timemath import month_end, month_start

logger = structlog.get_logger(__name__)

INVESTMENT_CATEGORY = "Investments"


class InvestmentPlanError(Exception):
    """An investment plan operation was refused."""
    pass


class ObligationMaterializer:
    """
    Turns due recurring rules and salary cadence into ledger entries.

    Flow per rule:
    1. Parse the payload and work out the next due date (no writes)
    2. Create the entry and advance the rule inside one transaction
    3. Audit the outcome

    A rule with a malformed payload or unknown frequency is SKIPPED and
    keeps its due date, so it is retried on the next run. A rule whose
    writes fail is FAILED and rolled back.

    Meant to be run once a day by an external scheduler; running it again
    on the same day credits nothing twice.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[FinanceSettings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().finance

    def run(self, today: Optional[date] = None) -> MaterializationReport:
        """
        Process every due rule, then every owner's salary.

        Args:
            today: Processing date; defaults to date.today()

        Returns:
            Report with one outcome per rule and per owner
        """
        today = today or date.today()
        correlation_id = create_correlation_id()
        report = MaterializationReport(run_id=correlation_id, run_date=today)

        logger.info("materialization_started", run_id=str(correlation_id), date=today.isoformat())

        report.rules.extend(self.process_recurring(today, correlation_id))
        report.salaries.extend(self.credit_salaries(today, correlation_id))

        logger.info(
            "materialization_completed",
            run_id=str(correlation_id),
            processed=report.processed_count,
            skipped=report.skipped_count,
            failed=report.failed_count,
            salaries_credited=report.credited_count,
        )
        return report

    # -------------------------------------------------------------------------
    # Recurring rules
    # -------------------------------------------------------------------------

    def process_recurring(
        self,
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> list[RuleOutcome]:
        """Materialize every rule due on or before today."""
        outcomes = []
        for rule in self._storage.find_due_recurring_rules(today):
            if not is_due(rule, today):
                continue
            outcomes.append(self._process_rule(rule, today, correlation_id))
        return outcomes

    def _process_rule(
        self,
        rule: RecurringRule,
        today: date,
        correlation_id: Optional[UUID],
    ) -> RuleOutcome:
        try:
            payload = parse_payload(rule)
            next_due_on = advance(rule, lenient=self._settings.lenient_unknown_frequency)
        except SchedulingError as e:
            logger.warning("recurring_rule_skipped", rule_id=str(rule.id), reason=str(e))
            if self._audit_logger:
                self._audit_logger.log_recurring_skipped(
                    owner_id=rule.owner_id,
                    rule_id=rule.id,
                    reason=str(e),
                    occurred_on=today,
                    correlation_id=correlation_id,
                )
            return RuleOutcome(
                rule_id=rule.id,
                owner_id=rule.owner_id,
                status=OutcomeStatus.SKIPPED,
                next_due_on=rule.next_due_on,
                reason=str(e),
            )

        try:
            entry = LedgerEntry(
                owner_id=rule.owner_id,
                amount=payload.amount,
                kind=payload.kind,
                category=payload.category,
                occurred_on=today,
                note=payload.note,
                recurring_rule_id=rule.id,
            )
            with self._storage.transaction():
                self._storage.create_ledger_entry(entry)
                self._storage.update_recurring_rule(
                    rule.model_copy(update={"next_due_on": next_due_on})
                )
        except Exception as e:
            logger.error(
                "recurring_rule_failed",
                rule_id=str(rule.id),
                error=str(e),
                exc_info=True,
            )
            if self._audit_logger:
                self._audit_logger.log_recurring_failed(
                    owner_id=rule.owner_id,
                    rule_id=rule.id,
                    error_message=str(e),
                    occurred_on=today,
                    correlation_id=correlation_id,
                )
            return RuleOutcome(
                rule_id=rule.id,
                owner_id=rule.owner_id,
                status=OutcomeStatus.FAILED,
                next_due_on=rule.next_due_on,
                reason=str(e),
            )

        if self._audit_logger:
            self._audit_logger.log_recurring_processed(
                owner_id=rule.owner_id,
                rule_id=rule.id,
                entry_id=entry.id,
                occurred_on=today,
                next_due_on=next_due_on,
                correlation_id=correlation_id,
            )
        return RuleOutcome(
            rule_id=rule.id,
            owner_id=rule.owner_id,
            status=OutcomeStatus.PROCESSED,
            entry_id=entry.id,
            next_due_on=next_due_on,
        )

    # -------------------------------------------------------------------------
    # Salary
    # -------------------------------------------------------------------------

    def credit_salaries(
        self,
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> list[SalaryOutcome]:
        """
        Credit the current salary of every owner whose pay day is today.

        Pay day is the day-of-month of the salary's effective date. A salary
        income entry already in this calendar month means it was credited.
        """
        outcomes = []
        for owner_id in self._storage.find_owner_ids():
            try:
                outcomes.append(self._credit_salary(owner_id, today, correlation_id))
            except Exception as e:
                logger.error(
                    "salary_credit_failed",
                    owner_id=str(owner_id),
                    error=str(e),
                    exc_info=True,
                )
                if self._audit_logger:
                    self._audit_logger.log_error(
                        error_type="salary_credit_failed",
                        error_message=str(e),
                        owner_id=owner_id,
                        correlation_id=correlation_id,
                    )
                outcomes.append(SalaryOutcome(
                    owner_id=owner_id,
                    status=OutcomeStatus.FAILED,
                    reason=str(e),
                ))
        return outcomes

    def _credit_salary(
        self,
        owner_id: UUID,
        today: date,
        correlation_id: Optional[UUID],
    ) -> SalaryOutcome:
        salary = self._storage.find_current_salary(owner_id)
        if salary is None:
            return SalaryOutcome(owner_id=owner_id, status=OutcomeStatus.NO_SALARY)

        if today.day != salary.effective_on.day:
            return SalaryOutcome(owner_id=owner_id, status=OutcomeStatus.NOT_DUE)

        category = self._settings.salary_category
        this_month = self._storage.find_ledger_entries(
            owner_id,
            date_from=month_start(today),
            date_to=month_end(today),
        )
        if any(e.kind == EntryKind.INCOME and e.category == category for e in this_month):
            logger.debug("salary_already_credited", owner_id=str(owner_id))
            return SalaryOutcome(owner_id=owner_id, status=OutcomeStatus.ALREADY_CREDITED)

        entry = LedgerEntry(
            owner_id=owner_id,
            amount=salary.amount,
            kind=EntryKind.INCOME,
            category=category,
            occurred_on=today,
            note=self._settings.salary_note,
        )
        with self._storage.transaction():
            self._storage.create_ledger_entry(entry)

        if self._audit_logger:
            self._audit_logger.log_salary_credited(
                owner_id=owner_id,
                entry_id=entry.id,
                amount=salary.amount,
                occurred_on=today,
                correlation_id=correlation_id,
            )
        return SalaryOutcome(
            owner_id=owner_id,
            status=OutcomeStatus.CREDITED,
            entry_id=entry.id,
        )


class InvestmentPlanFlow:
    """
    Contributions to and closure of investment plans.

    Flow:
    1. invest() -> investment entry stamped with the plan
       (one regular contribution per calendar month)
    2. close()  -> maturity income entry, plan archived
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    def _get_plan(self, plan_id: UUID) -> InvestmentPlan:
        plan = self._storage.get_investment_plan(plan_id)
        if plan is None:
            raise InvestmentPlanError(f"Investment plan not found: {plan_id}")
        return plan

    def invest(
        self,
        plan_id: UUID,
        amount: Optional[Decimal] = None,
        today: Optional[date] = None,
        allow_additional: bool = False,
    ) -> LedgerEntry:
        """
        Record a contribution to an active plan.

        Args:
            plan_id: The plan to invest in
            amount: Contribution; the plan's monthly contribution if None
            today: Contribution date; defaults to date.today()
            allow_additional: Permit a contribution on top of this month's

        Returns:
            The created investment entry

        Raises:
            InvestmentPlanError: Plan missing or not active, or this month's
                contribution already made and allow_additional is False
        """
        today = today or date.today()
        plan = self._get_plan(plan_id)

        if plan.status != PlanStatus.ACTIVE:
            raise InvestmentPlanError(f"Investment plan is not active: {plan.name}")

        if not allow_additional:
            first, last = month_start(today), month_end(today)
            made_this_month = [
                e for e in self._storage.find_plan_contributions(plan_id)
                if first <= e.occurred_on <= last
            ]
            if made_this_month:
                raise InvestmentPlanError(
                    "Monthly investment already made for this month. "
                    "Pass allow_additional=True to add an additional investment."
                )

        entry = LedgerEntry(
            owner_id=plan.owner_id,
            amount=amount if amount is not None else plan.monthly_contribution,
            kind=EntryKind.INVESTMENT,
            category=INVESTMENT_CATEGORY,
            occurred_on=today,
            note=f"Investment in {plan.name}",
            plan_id=plan.id,
        )
        with self._storage.transaction():
            self._storage.create_ledger_entry(entry)

        if self._audit_logger:
            self._audit_logger.log_investment_made(
                owner_id=plan.owner_id,
                plan_id=plan.id,
                plan_name=plan.name,
                entry_id=entry.id,
                amount=entry.amount,
                is_monthly=not allow_additional,
            )
        logger.info("investment_made", plan_id=str(plan.id), amount=str(entry.amount))
        return entry

    def close(
        self,
        plan_id: UUID,
        maturity_amount: Optional[Decimal] = None,
        today: Optional[date] = None,
    ) -> PlanClosure:
        """
        Close a plan and pay out its maturity amount.

        The maturity amount defaults to the total contributed. A payout of
        0 archives the plan without creating an entry.

        Raises:
            InvestmentPlanError: Plan missing, already archived, or a
                negative maturity amount
        """
        today = today or date.today()
        plan = self._get_plan(plan_id)

        if plan.status == PlanStatus.ARCHIVED:
            raise InvestmentPlanError(f"Investment plan is already closed: {plan.name}")

        total_invested = sum(
            (e.amount for e in self._storage.find_plan_contributions(plan_id)),
            Decimal("0"),
        )
        payout = Decimal(str(maturity_amount)) if maturity_amount is not None else total_invested
        if payout < 0:
            raise InvestmentPlanError("Maturity amount cannot be negative")

        entry = None
        if payout > 0:
            entry = LedgerEntry(
                owner_id=plan.owner_id,
                amount=payout,
                kind=EntryKind.INCOME,
                category=INVESTMENT_CATEGORY,
                occurred_on=today,
                note=f"Maturity/Withdrawal from {plan.name}",
                plan_id=plan.id,
            )

        archived = plan.model_copy(update={
            "status": PlanStatus.ARCHIVED,
            "end_on": max(today, plan.start_on),
        })
        with self._storage.transaction():
            if entry is not None:
                self._storage.create_ledger_entry(entry)
            self._storage.update_investment_plan(archived)

        invested = round_money(total_invested)
        maturity = round_money(payout)
        returns = round_money(maturity - invested)
        return_percent = round_money(returns / invested * 100) if invested > 0 else 0.0

        if self._audit_logger:
            self._audit_logger.log_investment_closed(
                owner_id=plan.owner_id,
                plan_id=plan.id,
                plan_name=plan.name,
                entry_id=entry.id if entry else None,
                total_invested=invested,
                maturity_amount=maturity,
            )
        logger.info("investment_plan_closed", plan_id=str(plan.id), returns=returns)

        return PlanClosure(
            plan_id=plan.id,
            entry_id=entry.id if entry else None,
            total_invested=invested,
            maturity_amount=maturity,
            returns=returns,
            return_percent=return_percent,
        )


def create_core_components(
    storage: LedgerStorageInterface,
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[FinanceSettings] = None,
) -> tuple[ObligationMaterializer, InvestmentPlanFlow, GoalEvaluator]:
    """
    Factory function to create the engine's stateful components.

    Args:
        storage: Ledger storage collaborator
        audit_storage: Where audit events are persisted.
                    If None, audit events are only logged locally.
        settings: Finance settings; loaded from the environment if None

    Returns:
        (materializer, plan_flow, goal_evaluator)
    """
    settings = settings or get_settings().finance
    audit_logger = AuditLogger(audit_storage)

    materializer = ObligationMaterializer(
        storage=storage,
        audit_logger=audit_logger,
        settings=settings,
    )
    plan_flow = InvestmentPlanFlow(
        storage=storage,
        audit_logger=audit_logger,
    )
    goal_evaluator = GoalEvaluator(settings)

    return materializer, plan_flow, goal_evaluator
