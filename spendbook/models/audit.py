"""
Audit Models for Spendbook

Every ledger mutation produces an event so the history of a session
can be reconstructed from the logs:
1. What changed (expense, category, settings, whole ledger)
2. Which record it touched
3. What was rejected and why
4. When persistence failed

DESIGN DECISION: Events are append-only log entries. They are written
to the structured log and never read back by the core.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_EDITED = "expense_edited"
    EXPENSE_TRASHED = "expense_trashed"
    EXPENSE_RESTORED = "expense_restored"
    EXPENSE_PURGED = "expense_purged"
    TRASH_EMPTIED = "trash_emptied"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_RENAMED = "category_renamed"
    CATEGORY_REORDERED = "category_reordered"
    CATEGORY_REMOVED = "category_removed"

    # Settings
    SETTINGS_UPDATED = "settings_updated"

    # Whole-ledger operations
    STATE_LOADED = "state_loaded"
    SNAPSHOT_EXPORTED = "snapshot_exported"
    SNAPSHOT_IMPORTED = "snapshot_imported"

    # Failures
    MUTATION_REJECTED = "mutation_rejected"
    PERSIST_FAILED = "persist_failed"


class LedgerEventSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )
    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'category', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Id (or name, for categories) of the entity"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = LedgerEventBuilder.expense_added(expense_id, "12.50", "吃饭")
        event = LedgerEventBuilder.persist_failed(["expenses"], "disk full")
    """

    @staticmethod
    def expense_added(expense_id: str, amount: str, category: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {amount} in {category}",
            details={"amount": amount, "category": category},
        )

    @staticmethod
    def expense_edited(expense_id: str, changes: dict[str, Any]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_EDITED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense edited: {', '.join(sorted(changes)) or 'no changes'}",
            details={"changes": changes},
        )

    @staticmethod
    def expense_trashed(expense_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_TRASHED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense moved to trash",
        )

    @staticmethod
    def expense_restored(expense_id: str, category: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_RESTORED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense restored from trash",
            details={"category": category},
        )

    @staticmethod
    def expense_purged(expense_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_PURGED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense permanently deleted",
        )

    @staticmethod
    def trash_emptied(count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRASH_EMPTIED,
            entity_type="trash",
            description=f"Trash emptied ({count} records)",
            details={"count": count},
        )

    @staticmethod
    def category_added(name: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=name,
            description=f"Category added: {name}",
        )

    @staticmethod
    def category_renamed(old_name: str, new_name: str, cascaded: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_RENAMED,
            entity_type="category",
            entity_id=new_name,
            description=f"Category renamed: {old_name} -> {new_name}",
            details={"old_name": old_name, "new_name": new_name, "records_updated": cascaded},
        )

    @staticmethod
    def category_reordered(name: str, old_index: int, new_index: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_REORDERED,
            entity_type="category",
            entity_id=name,
            description=f"Category moved: {name}",
            details={"from": old_index, "to": new_index},
        )

    @staticmethod
    def category_removed(name: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_REMOVED,
            entity_type="category",
            entity_id=name,
            description=f"Category removed: {name}",
        )

    @staticmethod
    def settings_updated(daily_budget: str, monthly_budget: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description="Budget settings updated",
            details={"daily_budget": daily_budget, "monthly_budget": monthly_budget},
        )

    @staticmethod
    def state_loaded(expenses: int, trash: int, categories: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STATE_LOADED,
            entity_type="ledger",
            description="Ledger state loaded",
            details={"expenses": expenses, "trash": trash, "categories": categories},
        )

    @staticmethod
    def snapshot_exported(export_format: str, record_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_EXPORTED,
            entity_type="ledger",
            description=f"Exported {record_count} records as {export_format}",
            details={"format": export_format, "record_count": record_count},
        )

    @staticmethod
    def snapshot_imported(
        source_format: str,
        policy: str,
        imported: int,
        replaced: int,
        issues: int,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_IMPORTED,
            entity_type="ledger",
            description=f"Imported {imported} records ({source_format}, {policy})",
            details={
                "format": source_format,
                "policy": policy,
                "imported": imported,
                "replaced": replaced,
                "issues": issues,
            },
        )

    @staticmethod
    def mutation_rejected(operation: str, error_type: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MUTATION_REJECTED,
            severity=LedgerEventSeverity.WARNING,
            description=f"Rejected {operation}: {error_type}",
            details={"operation": operation, "error_type": error_type},
            error_message=error_message,
        )

    @staticmethod
    def persist_failed(keys: list[str], error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PERSIST_FAILED,
            severity=LedgerEventSeverity.ERROR,
            entity_type="store",
            description=f"Failed to persist: {', '.join(keys)}",
            details={"keys": keys},
            error_message=error_message,
        )
