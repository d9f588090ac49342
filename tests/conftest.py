"""
Shared fixtures for Spendbook tests.

Time is always injected: the "now" of every test is 2024-03-01 09:30,
a Friday in a leap-year March.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import pytest

from spendbook.audit import AuditLogger
from spendbook.config import LedgerSettings
from spendbook.ledger import LedgerState
from spendbook.models import Category, Expense
from spendbook.orchestrator import ExpenseBook
from spendbook.services.storage import InMemoryStateStore, StorageError


FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0)
FIXED_TODAY = FIXED_NOW.date()


class FailingStateStore(InMemoryStateStore):
    """In-memory store whose writes to selected keys always fail."""

    def __init__(self, fail_keys: tuple = ("expenses",), initial: Optional[dict] = None):
        super().__init__(initial)
        self.fail_keys = set(fail_keys)

    def save(self, key: str, value: Any) -> None:
        if key in self.fail_keys:
            raise StorageError(f"disk full while writing {key}")
        super().save(key, value)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def make_expense():
    """Factory for expenses at a given day and time."""

    def _make(
        amount: str,
        day: date = FIXED_TODAY,
        category: str = "日常",
        title: str = "午饭",
        hour: int = 12,
        minute: int = 0,
    ) -> Expense:
        return Expense(
            title=title,
            amount=Decimal(amount),
            timestamp=datetime(day.year, day.month, day.day, hour, minute),
            category=category,
        )

    return _make


@pytest.fixture
def state() -> LedgerState:
    return LedgerState()


@pytest.fixture
def food_state() -> LedgerState:
    """Two categories, Food first."""
    return LedgerState(categories=[
        Category(name="Food", color="#22c55e"),
        Category(name="Misc", color="#0ea5e9"),
    ])


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def book(store, ledger_settings, audit_logger, clock) -> ExpenseBook:
    book = ExpenseBook(
        store=store,
        ledger_settings=ledger_settings,
        audit_logger=audit_logger,
        clock=clock,
    )
    book.load()
    return book


@pytest.fixture
def failing_store():
    """Factory for stores whose writes to the given keys fail."""

    def _make(*fail_keys: str) -> FailingStateStore:
        return FailingStateStore(fail_keys=fail_keys)

    return _make
