"""
Flow tests for the materializer and investment plan flows.

Run against the in-memory storage collaborator.
"""

from datetime import date
from decimal import Decimal

import pytest

from fincore.models.audit import AuditEventType
from fincore.models.ledger import (
    EntryKind,
    Goal,
    InvestmentPlan,
    LedgerEntry,
    PlanStatus,
    SalaryRecord,
)
from fincore.models.reports import OutcomeStatus
from fincore.orchestrator import (
    InvestmentPlanError,
    InvestmentPlanFlow,
    ObligationMaterializer,
    create_core_components,
)
from fincore.goals import GoalEvaluator
from fincore.services.storage import InMemoryLedgerStorage, StorageError
from fincore.timemath import FAR_FUTURE

from conftest import make_payload, make_rule


class FailingLedgerStorage(InMemoryLedgerStorage):
    """Fails the schedule update of selected rules, after the entry was written."""

    def __init__(self, failing_rule_ids=()):
        super().__init__()
        self.failing_rule_ids = set(failing_rule_ids)

    def update_recurring_rule(self, rule):
        if rule.id in self.failing_rule_ids:
            raise StorageError("disk full")
        return super().update_recurring_rule(rule)


class BrokenAuditStorage:
    """Audit storage whose writes always fail."""

    def append_event(self, event):
        raise StorageError("audit backend down")


@pytest.fixture
def materializer(storage, audit_logger, finance_settings):
    return ObligationMaterializer(storage, audit_logger, finance_settings)


def _salary_entries(storage, owner_id):
    return [
        e for e in storage.find_ledger_entries(owner_id)
        if e.kind == EntryKind.INCOME and e.category == "Salary"
    ]


class TestRecurringRules:
    """Due rules become ledger entries exactly once per occurrence."""

    def test_due_rule_is_materialized(self, storage, materializer, audit_storage, owner_id, today):
        rule = storage.add_rule(make_rule(owner_id, date(2024, 3, 10), payload=make_payload(
            amount="1499", kind="expense", category="Subscriptions", note="Gym",
        )))

        report = materializer.run(today)

        assert report.processed_count == 1
        outcome = report.rules[0]
        assert outcome.status == OutcomeStatus.PROCESSED
        assert outcome.next_due_on == date(2024, 4, 10)

        entries = storage.find_ledger_entries(owner_id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.id == outcome.entry_id
        assert entry.amount == Decimal("1499")
        assert entry.kind == EntryKind.EXPENSE
        assert entry.occurred_on == today
        assert entry.note == "Gym"
        assert entry.recurring_rule_id == rule.id

        assert storage.get_recurring_rule(rule.id).next_due_on == date(2024, 4, 10)

        events = audit_storage.get_events_by_correlation_id(report.run_id)
        processed = [e for e in events if e.event_type == AuditEventType.RECURRING_PROCESSED]
        assert len(processed) == 1
        assert processed[0].details["entry_id"] == str(entry.id)

    def test_rule_not_due_is_untouched(self, storage, materializer, owner_id, today):
        rule = storage.add_rule(make_rule(owner_id, date(2024, 3, 16)))
        report = materializer.run(today)
        assert report.rules == []
        assert storage.find_ledger_entries(owner_id) == []
        assert storage.get_recurring_rule(rule.id).next_due_on == date(2024, 3, 16)

    def test_second_run_same_day_creates_nothing(self, storage, materializer, owner_id, today):
        storage.add_rule(make_rule(owner_id, date(2024, 3, 15)))
        materializer.run(today)
        second = materializer.run(today)
        assert second.rules == []
        assert len(storage.find_ledger_entries(owner_id)) == 1

    def test_once_rule_fires_once(self, storage, materializer, owner_id, today):
        rule = storage.add_rule(make_rule(owner_id, date(2024, 3, 1), frequency="once"))
        materializer.run(today)
        materializer.run(date(2030, 1, 1))
        assert storage.get_recurring_rule(rule.id).next_due_on == FAR_FUTURE
        assert len(storage.find_ledger_entries(owner_id)) == 1

    def test_malformed_payload_is_skipped_without_mutation(
        self, storage, materializer, audit_storage, owner_id, today
    ):
        """A bad payload never blocks other rules or moves its own schedule."""
        bad = storage.add_rule(make_rule(owner_id, date(2024, 3, 1), payload="{oops"))
        good = storage.add_rule(make_rule(owner_id, date(2024, 3, 2)))

        report = materializer.run(today)

        statuses = {o.rule_id: o.status for o in report.rules}
        assert statuses[bad.id] == OutcomeStatus.SKIPPED
        assert statuses[good.id] == OutcomeStatus.PROCESSED
        assert storage.get_recurring_rule(bad.id).next_due_on == date(2024, 3, 1)
        assert len(storage.find_ledger_entries(owner_id)) == 1

        skipped = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.RECURRING_SKIPPED
        ]
        assert len(skipped) == 1
        assert skipped[0].entity_id == bad.id

    def test_unknown_frequency_is_skipped(self, storage, materializer, owner_id, today):
        rule = storage.add_rule(make_rule(owner_id, date(2024, 3, 1), frequency="fortnightly"))
        report = materializer.run(today)
        assert report.rules[0].status == OutcomeStatus.SKIPPED
        assert "fortnightly" in report.rules[0].reason
        assert storage.get_recurring_rule(rule.id).next_due_on == date(2024, 3, 1)
        assert storage.find_ledger_entries(owner_id) == []

    def test_unknown_frequency_lenient_mode(self, storage, finance_settings, owner_id, today):
        settings = finance_settings.model_copy(update={"lenient_unknown_frequency": True})
        materializer = ObligationMaterializer(storage, settings=settings)
        rule = storage.add_rule(make_rule(owner_id, date(2024, 1, 31), frequency="fortnightly"))

        report = materializer.run(today)

        assert report.rules[0].status == OutcomeStatus.PROCESSED
        assert storage.get_recurring_rule(rule.id).next_due_on == date(2024, 2, 29)

    def test_failed_write_rolls_back_and_batch_continues(
        self, audit_logger, audit_storage, finance_settings, owner_id, today
    ):
        """Entry and schedule advance happen together or not at all."""
        storage = FailingLedgerStorage()
        broken = storage.add_rule(make_rule(owner_id, date(2024, 3, 1)))
        healthy = storage.add_rule(make_rule(owner_id, date(2024, 3, 5)))
        storage.failing_rule_ids.add(broken.id)

        report = ObligationMaterializer(storage, audit_logger, finance_settings).run(today)

        statuses = {o.rule_id: o.status for o in report.rules}
        assert statuses[broken.id] == OutcomeStatus.FAILED
        assert statuses[healthy.id] == OutcomeStatus.PROCESSED
        assert report.has_failures

        entries = storage.find_ledger_entries(owner_id)
        assert [e.recurring_rule_id for e in entries] == [healthy.id]
        assert storage.get_recurring_rule(broken.id).next_due_on == date(2024, 3, 1)

        failed = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.RECURRING_FAILED
        ]
        assert len(failed) == 1
        assert failed[0].error_message == "disk full"

    def test_audit_failure_does_not_fail_the_run(self, storage, finance_settings, owner_id, today):
        from fincore.audit import AuditLogger

        materializer = ObligationMaterializer(
            storage, AuditLogger(BrokenAuditStorage()), finance_settings
        )
        storage.add_rule(make_rule(owner_id, date(2024, 3, 1)))

        report = materializer.run(today)

        assert report.processed_count == 1
        assert len(storage.find_ledger_entries(owner_id)) == 1


class TestSalaryCredit:
    """Salary is credited on its pay day, once per month."""

    def test_salary_credited_on_pay_day(
        self, storage, materializer, audit_storage, owner_id, today, salary_amount
    ):
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=salary_amount, effective_on=date(2023, 7, 15)))

        report = materializer.run(today)

        assert report.credited_count == 1
        credited = _salary_entries(storage, owner_id)
        assert len(credited) == 1
        assert credited[0].amount == salary_amount
        assert credited[0].occurred_on == today
        assert credited[0].note == "Automated salary credit"

        events = audit_storage.get_events_by_owner(owner_id)
        assert [e.event_type for e in events] == [AuditEventType.SALARY_CREDITED]

    def test_salary_credit_is_idempotent(self, storage, materializer, owner_id, today, salary_amount):
        """Running twice on the same day yields one salary entry."""
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=salary_amount, effective_on=date(2023, 7, 15)))

        materializer.run(today)
        second = materializer.run(today)

        assert second.salaries[0].status == OutcomeStatus.ALREADY_CREDITED
        assert len(_salary_entries(storage, owner_id)) == 1

    def test_manual_salary_entry_blocks_credit(self, storage, materializer, owner_id, today, salary_amount):
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=salary_amount, effective_on=date(2023, 7, 15)))
        storage.add_entry(LedgerEntry(
            owner_id=owner_id,
            amount=Decimal("80000"),
            kind=EntryKind.INCOME,
            category="Salary",
            occurred_on=date(2024, 3, 2),
        ))

        report = materializer.run(today)

        assert report.salaries[0].status == OutcomeStatus.ALREADY_CREDITED
        assert len(_salary_entries(storage, owner_id)) == 1

    def test_last_month_salary_does_not_block(self, storage, materializer, owner_id, today, salary_amount):
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=salary_amount, effective_on=date(2023, 7, 15)))
        materializer.run(date(2024, 2, 15))
        materializer.run(today)
        assert len(_salary_entries(storage, owner_id)) == 2

    def test_not_pay_day(self, storage, materializer, owner_id, today, salary_amount):
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=salary_amount, effective_on=date(2023, 7, 1)))
        report = materializer.run(today)
        assert report.salaries[0].status == OutcomeStatus.NOT_DUE
        assert _salary_entries(storage, owner_id) == []

    def test_latest_salary_is_used(self, storage, materializer, owner_id, today):
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=Decimal("60000"), effective_on=date(2022, 4, 15)))
        storage.add_salary(SalaryRecord(owner_id=owner_id, amount=Decimal("75000"), effective_on=date(2023, 4, 15)))
        materializer.run(today)
        assert _salary_entries(storage, owner_id)[0].amount == Decimal("75000")

    def test_owner_without_salary(self, storage, materializer, owner_id, today):
        storage.add_rule(make_rule(owner_id, date(2024, 4, 1)))
        report = materializer.run(today)
        assert report.salaries[0].status == OutcomeStatus.NO_SALARY


class TestInvestmentPlanFlow:
    """Contributions and closure of plans."""

    @pytest.fixture
    def plan(self, storage, owner_id):
        return storage.add_plan(InvestmentPlan(
            owner_id=owner_id,
            name="Nifty index fund",
            monthly_contribution=Decimal("5000"),
            expected_return_min=10,
            expected_return_max=14,
            start_on=date(2024, 1, 1),
        ))

    @pytest.fixture
    def flow(self, storage, audit_logger):
        return InvestmentPlanFlow(storage, audit_logger)

    def test_invest_defaults_to_monthly_contribution(self, flow, plan, storage, today):
        entry = flow.invest(plan.id, today=today)
        assert entry.amount == Decimal("5000")
        assert entry.kind == EntryKind.INVESTMENT
        assert entry.category == "Investments"
        assert entry.plan_id == plan.id
        assert storage.find_plan_contributions(plan.id) == [entry]

    def test_second_monthly_investment_is_refused(self, flow, plan, today):
        flow.invest(plan.id, today=today)
        with pytest.raises(InvestmentPlanError, match="already made"):
            flow.invest(plan.id, today=date(2024, 3, 28))

    def test_additional_investment_allowed(self, flow, plan, storage, audit_storage, today):
        flow.invest(plan.id, today=today)
        flow.invest(plan.id, Decimal("2000"), today=today, allow_additional=True)
        assert len(storage.find_plan_contributions(plan.id)) == 2

        made = [e for e in audit_storage.events if e.event_type == AuditEventType.INVESTMENT_MADE]
        assert [e.details["is_monthly"] for e in made] == [True, False]

    def test_next_month_investment_allowed(self, flow, plan, storage, today):
        flow.invest(plan.id, today=today)
        flow.invest(plan.id, today=date(2024, 4, 1))
        assert len(storage.find_plan_contributions(plan.id)) == 2

    def test_inactive_plan_refused(self, flow, plan, storage, today):
        storage.add_plan(plan.model_copy(update={"status": PlanStatus.PAUSED}))
        with pytest.raises(InvestmentPlanError, match="not active"):
            flow.invest(plan.id, today=today)

    def test_close_plan(self, flow, plan, storage, audit_storage, owner_id, today):
        flow.invest(plan.id, today=date(2024, 1, 5))
        flow.invest(plan.id, today=date(2024, 2, 5))

        closure = flow.close(plan.id, maturity_amount=Decimal("11000"), today=today)

        assert closure.total_invested == 10000
        assert closure.maturity_amount == 11000
        assert closure.returns == 1000
        assert closure.return_percent == 10.0

        closed = storage.get_investment_plan(plan.id)
        assert closed.status == PlanStatus.ARCHIVED
        assert closed.end_on == today

        payout = [e for e in storage.find_ledger_entries(owner_id) if e.kind == EntryKind.INCOME]
        assert len(payout) == 1
        assert payout[0].id == closure.entry_id
        assert payout[0].amount == Decimal("11000")

        closed_events = [e for e in audit_storage.events if e.event_type == AuditEventType.INVESTMENT_CLOSED]
        assert closed_events[0].details["returns"] == 1000

    def test_close_defaults_to_total_invested(self, flow, plan, today):
        flow.invest(plan.id, today=date(2024, 2, 5))
        closure = flow.close(plan.id, today=today)
        assert closure.maturity_amount == 5000
        assert closure.returns == 0
        assert closure.return_percent == 0.0

    def test_close_without_contributions(self, flow, plan, storage, owner_id, today):
        closure = flow.close(plan.id, today=today)
        assert closure.entry_id is None
        assert closure.return_percent == 0.0
        assert storage.find_ledger_entries(owner_id) == []
        assert storage.get_investment_plan(plan.id).status == PlanStatus.ARCHIVED

    def test_close_twice_refused(self, flow, plan, today):
        flow.close(plan.id, today=today)
        with pytest.raises(InvestmentPlanError, match="already closed"):
            flow.close(plan.id, today=today)

    def test_unknown_plan(self, flow, today):
        from uuid import uuid4

        with pytest.raises(InvestmentPlanError, match="not found"):
            flow.invest(uuid4(), today=today)


class TestCoreComponents:
    """The factory wires storage, audit and settings together."""

    def test_create_core_components(self, storage, audit_storage, finance_settings, owner_id, today):
        materializer, plan_flow, evaluator = create_core_components(
            storage, audit_storage, finance_settings
        )
        assert isinstance(materializer, ObligationMaterializer)
        assert isinstance(plan_flow, InvestmentPlanFlow)
        assert isinstance(evaluator, GoalEvaluator)

        storage.add_rule(make_rule(owner_id, date(2024, 3, 1)))
        report = materializer.run(today)
        assert audit_storage.get_events_by_correlation_id(report.run_id)

    def test_goal_status_round_trip_through_plans(self, storage, finance_settings, owner_id, today):
        goal = storage.add_goal(Goal(
            owner_id=owner_id,
            name="Car",
            target_amount=Decimal("600000"),
            target_on=date(2027, 3, 15),
        ))
        storage.add_plan(InvestmentPlan(
            owner_id=owner_id,
            goal_id=goal.id,
            monthly_contribution=Decimal("1000"),
            expected_return_min=8,
            expected_return_max=12,
            start_on=date(2024, 1, 1),
        ))
        evaluator = GoalEvaluator(finance_settings)
        plans = storage.find_active_investment_plans(owner_id)

        result = evaluator.evaluate_linked_plans(goal, plans, today)

        assert evaluator.refresh_status(goal, result).status.value == "behind"
        assert storage.find_goals(owner_id) == [goal]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
