"""
Data Models Package

This package contains all Pydantic models used in Spendbook.
All data flowing through the system must conform to these schemas.
"""

from spendbook.models.expense import (
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_DAILY_BUDGET,
    MIN_EXPENSE_AMOUNT,
    PLACEHOLDER_TITLE,
    SNAPSHOT_VERSION,
    BudgetSettings,
    Category,
    Expense,
    ImportReport,
    Selection,
    Snapshot,
    TrashedExpense,
    ValidationIssue,
    default_categories,
    from_epoch_ms,
    new_id,
    quantize_amount,
    to_epoch_ms,
)
from spendbook.models.views import (
    BucketTotal,
    BudgetLine,
    BudgetSummary,
    CalendarDay,
    CalendarMonth,
    DayExtreme,
    Extremes,
    Segment,
    TrendPoint,
)
from spendbook.models.audit import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
    LedgerEventSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY_COLOR",
    "DEFAULT_DAILY_BUDGET",
    "MIN_EXPENSE_AMOUNT",
    "PLACEHOLDER_TITLE",
    "SNAPSHOT_VERSION",
    "BudgetSettings",
    "Category",
    "Expense",
    "ImportReport",
    "Selection",
    "Snapshot",
    "TrashedExpense",
    "ValidationIssue",
    "default_categories",
    "from_epoch_ms",
    "new_id",
    "quantize_amount",
    "to_epoch_ms",
    # View models
    "BucketTotal",
    "BudgetLine",
    "BudgetSummary",
    "CalendarDay",
    "CalendarMonth",
    "DayExtreme",
    "Extremes",
    "Segment",
    "TrendPoint",
    # Audit models
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
    "LedgerEventSeverity",
]
