"""Shared fixtures for the test suite."""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from fincore.audit import AuditLogger
from fincore.config import FinanceSettings
from fincore.models.ledger import RecurringRule
from fincore.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage


def make_payload(amount="1500", kind="expense", category="Utilities", note=None) -> str:
    """Serialize a recurring payload the way the API layer stores it."""
    data = {"amount": str(amount), "kind": kind, "category": category}
    if note is not None:
        data["note"] = note
    return json.dumps(data)


def make_rule(owner_id, next_due_on, frequency="monthly", payload=None, active=True) -> RecurringRule:
    return RecurringRule(
        owner_id=owner_id,
        payload_template=payload if payload is not None else make_payload(),
        frequency=frequency,
        next_due_on=next_due_on,
        active=active,
    )


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def finance_settings():
    """Settings with the stock defaults, independent of the environment."""
    return FinanceSettings(
        salary_category="Salary",
        salary_note="Automated salary credit",
        on_track_tolerance=0.9,
        default_expected_return_percent=12.0,
        default_annual_increase_percent=10.0,
        unclassified_bucket="wants",
        lenient_unknown_frequency=False,
    )


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def today():
    return date(2024, 3, 15)


@pytest.fixture
def salary_amount():
    return Decimal("85000")
