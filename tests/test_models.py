"""
Tests for Spendbook

Test strategy:
1. Unit tests for individual components (models, validators, queries)
2. Integration tests for the ExpenseBook flows (with in-memory stores)
3. Time is injected everywhere; no test depends on the wall clock
"""

import pytest
from datetime import datetime
from decimal import Decimal

from spendbook.models import (
    DEFAULT_CATEGORIES,
    PLACEHOLDER_TITLE,
    BudgetSettings,
    Category,
    Expense,
    ImportReport,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
    Snapshot,
    TrashedExpense,
    ValidationIssue,
    default_categories,
    from_epoch_ms,
    to_epoch_ms,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(
            amount=Decimal("12.5"),
            timestamp=datetime(2024, 3, 1, 12, 0),
            category="吃饭",
        )
        assert expense.title == PLACEHOLDER_TITLE
        assert expense.amount == Decimal("12.50")
        assert expense.id

    def test_expense_ids_are_unique(self):
        """Test that generated ids differ."""
        a = Expense(amount=Decimal("1"), timestamp=datetime(2024, 3, 1), category="日常")
        b = Expense(amount=Decimal("1"), timestamp=datetime(2024, 3, 1), category="日常")
        assert a.id != b.id

    def test_expense_amount_quantized_to_cents(self):
        """Test amounts are rounded half-up to two decimals."""
        expense = Expense(amount=Decimal("3.005"), timestamp=datetime(2024, 3, 1), category="日常")
        assert expense.amount == Decimal("3.01")

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(amount=Decimal("-1"), timestamp=datetime(2024, 3, 1), category="日常")

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from title and category."""
        expense = Expense(
            title="  咖啡  ",
            amount=Decimal("18"),
            timestamp=datetime(2024, 3, 1),
            category=" 吃饭 ",
        )
        assert expense.title == "咖啡"
        assert expense.category == "吃饭"

    def test_timestamp_truncated_to_milliseconds(self):
        """Test sub-millisecond precision is dropped."""
        expense = Expense(
            amount=Decimal("1"),
            timestamp=datetime(2024, 3, 1, 12, 0, 0, 123456),
            category="日常",
        )
        assert expense.timestamp.microsecond == 123000

    def test_expense_to_record(self):
        """Test the persisted record layout."""
        ts = datetime(2024, 3, 1, 12, 0, 0, 250000)
        expense = Expense(id="e1", title="面", amount=Decimal("15"), timestamp=ts, category="吃饭")
        record = expense.to_record()

        assert record == {
            "id": "e1",
            "title": "面",
            "amount": 15.0,
            "ts": to_epoch_ms(ts),
            "category": "吃饭",
        }
        assert from_epoch_ms(record["ts"]) == ts

    def test_trashed_expense_round_trip(self):
        """Test converting to and from a trashed expense keeps every field."""
        expense = Expense(amount=Decimal("9.9"), timestamp=datetime(2024, 3, 1, 8), category="日常")
        trashed = TrashedExpense.from_expense(expense, deleted_at=datetime(2024, 3, 2, 10))

        assert trashed.id == expense.id
        assert trashed.to_expense() == expense
        assert "deletedAt" in trashed.to_record()


class TestCategoryModels:
    """Tests for categories and their defaults."""

    def test_default_categories(self):
        """Test the default category set and its order."""
        names = [c.name for c in DEFAULT_CATEGORIES]
        assert names == ["日常", "吃饭", "数码", "额外"]

    def test_default_categories_are_copies(self):
        """Test that default_categories() does not hand out shared objects."""
        first = default_categories()
        second = default_categories()
        assert first == second
        assert first[0] is not second[0]

    def test_blank_color_defaults(self):
        """Test a blank color falls back to the default color."""
        category = Category(name="书", color="  ")
        assert category.color == "#0ea5e9"

    def test_blank_name_rejected(self):
        """Test that an empty name is rejected."""
        with pytest.raises(ValueError):
            Category(name="   ")


class TestSettingsAndSnapshot:
    """Tests for budget settings and snapshots."""

    def test_budget_settings_defaults(self):
        """Test default budget values."""
        settings = BudgetSettings()
        assert settings.daily_budget == Decimal("30")
        assert settings.monthly_budget == Decimal("0")

    def test_budget_settings_rejects_zero_daily(self):
        """Test the daily budget must be positive."""
        with pytest.raises(ValueError):
            BudgetSettings(daily_budget=Decimal("0"))

    def test_budget_settings_to_record(self):
        """Test the persisted settings layout."""
        record = BudgetSettings(daily_budget=Decimal("50"), monthly_budget=Decimal("1200")).to_record()
        assert record == {"dailyBudget": 50.0, "monthlyBudget": 1200.0}

    def test_snapshot_to_document(self):
        """Test the snapshot document keys and version."""
        snapshot = Snapshot(
            generated_at=datetime(2024, 3, 1, 9, 30),
            categories=default_categories(),
        )
        document = snapshot.to_document()

        assert set(document) == {"version", "generatedAt", "expenses", "trash", "settings", "categories"}
        assert document["version"] == 1
        assert document["generatedAt"] == "2024-03-01T09:30:00.000"
        assert len(document["categories"]) == 4


class TestImportReport:
    """Tests for import report counters."""

    def test_corrected_and_skipped_counts(self):
        """Test that skipped rows and corrections are counted separately."""
        report = ImportReport(
            source_format="json",
            policy="replace",
            issues=[
                ValidationIssue(field="expenses[0]", issue_type="skipped_row", message="x", severity="warning"),
                ValidationIssue(field="expenses[1].title", issue_type="missing", message="x", severity="info"),
                ValidationIssue(field="expenses[2].amount", issue_type="invalid_value", message="x", severity="info"),
            ],
        )
        assert report.skipped_count == 1
        assert report.corrected_count == 2

    def test_issue_severity_must_be_known(self):
        """Test that severity is restricted to error/warning/info."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="missing", message="x", severity="fatal")


class TestAuditModels:
    """Tests for audit event models."""

    def test_ledger_event_creation(self):
        """Test LedgerEvent model creation."""
        event = LedgerEvent(
            event_type=LedgerEventType.EXPENSE_ADDED,
            description="Expense added",
        )
        assert event.event_id is not None
        assert event.severity == LedgerEventSeverity.INFO

    def test_ledger_event_to_log_dict(self):
        """Test conversion to a structured log dictionary."""
        event = LedgerEventBuilder.expense_added("e1", "12.50", "吃饭")
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "expense_added"
        assert log_dict["entity_id"] == "e1"
        assert log_dict["details"] == {"amount": "12.50", "category": "吃饭"}

    def test_builder_category_renamed(self):
        """Test the rename event records the cascade size."""
        event = LedgerEventBuilder.category_renamed("A", "B", 3)
        assert event.event_type == LedgerEventType.CATEGORY_RENAMED
        assert event.details["records_updated"] == 3

    def test_builder_persist_failed_is_warning(self):
        """Test persistence failures are not logged as plain info."""
        event = LedgerEventBuilder.persist_failed(["expenses"], "disk full")
        assert event.event_type == LedgerEventType.PERSIST_FAILED
        assert event.severity != LedgerEventSeverity.INFO
        assert event.error_message == "disk full"
