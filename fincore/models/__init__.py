"""
Data Models Package

This package contains all Pydantic models used in Personal Finance Core.
All data flowing into and out of the engine must conform to these schemas.
"""

from fincore.models.ledger import (
    BudgetBucket,
    BudgetRule,
    CompoundingFrequency,
    EntryKind,
    Frequency,
    Goal,
    GoalStatus,
    InvestmentPlan,
    LedgerEntry,
    LedgerPayload,
    PlanStatus,
    RecurringRule,
    SalaryRecord,
)
from fincore.models.reports import (
    BucketAllocation,
    BudgetAllocation,
    CashFlowPoint,
    GoalEvaluation,
    MaterializationReport,
    MonthlySummary,
    NetWorth,
    NetWorthPoint,
    OutcomeStatus,
    PlanClosure,
    ProjectionPoint,
    ProjectionRange,
    RuleOutcome,
    SalaryOutcome,
)
from fincore.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "BudgetBucket",
    "BudgetRule",
    "CompoundingFrequency",
    "EntryKind",
    "Frequency",
    "Goal",
    "GoalStatus",
    "InvestmentPlan",
    "LedgerEntry",
    "LedgerPayload",
    "PlanStatus",
    "RecurringRule",
    "SalaryRecord",
    # Results
    "BucketAllocation",
    "BudgetAllocation",
    "CashFlowPoint",
    "GoalEvaluation",
    "MaterializationReport",
    "MonthlySummary",
    "NetWorth",
    "NetWorthPoint",
    "OutcomeStatus",
    "PlanClosure",
    "ProjectionPoint",
    "ProjectionRange",
    "RuleOutcome",
    "SalaryOutcome",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
