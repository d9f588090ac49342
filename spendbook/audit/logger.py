"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. A trace of what happened to the user's data in a session
2. Debugging capability when a persisted file looks wrong
3. Visibility into persistence failures that did not stop the app

The audit logger:
- Writes structured (JSON) events through structlog
- Never raises: a logging problem must not break a ledger operation
"""

import logging
from typing import Any, Optional

import structlog

from spendbook.models.audit import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structured logs to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("spendbook").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Keeps the most recent events in memory so a host UI (or a test)
    can show what the last operations did.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("spendbook.audit")
        self._history_size = history_size
        self._history: list[LedgerEvent] = []

    @property
    def history(self) -> list[LedgerEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def log(self, event: LedgerEvent) -> None:
        """Log an audit event."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

        log_dict = event.to_log_dict()

        if event.severity == LedgerEventSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == LedgerEventSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == LedgerEventSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_expense_added(self, expense_id: str, amount: str, category: str) -> None:
        self.log(LedgerEventBuilder.expense_added(expense_id, amount, category))

    def log_expense_edited(self, expense_id: str, changes: dict[str, Any]) -> None:
        self.log(LedgerEventBuilder.expense_edited(expense_id, changes))

    def log_expense_trashed(self, expense_id: str) -> None:
        self.log(LedgerEventBuilder.expense_trashed(expense_id))

    def log_expense_restored(self, expense_id: str, category: str) -> None:
        self.log(LedgerEventBuilder.expense_restored(expense_id, category))

    def log_expense_purged(self, expense_id: str) -> None:
        self.log(LedgerEventBuilder.expense_purged(expense_id))

    def log_trash_emptied(self, count: int) -> None:
        self.log(LedgerEventBuilder.trash_emptied(count))

    def log_category_added(self, name: str) -> None:
        self.log(LedgerEventBuilder.category_added(name))

    def log_category_renamed(self, old_name: str, new_name: str, cascaded: int) -> None:
        self.log(LedgerEventBuilder.category_renamed(old_name, new_name, cascaded))

    def log_category_reordered(self, name: str, old_index: int, new_index: int) -> None:
        self.log(LedgerEventBuilder.category_reordered(name, old_index, new_index))

    def log_category_removed(self, name: str) -> None:
        self.log(LedgerEventBuilder.category_removed(name))

    def log_settings_updated(self, daily_budget: str, monthly_budget: str) -> None:
        self.log(LedgerEventBuilder.settings_updated(daily_budget, monthly_budget))

    def log_state_loaded(self, expenses: int, trash: int, categories: int) -> None:
        self.log(LedgerEventBuilder.state_loaded(expenses, trash, categories))

    def log_snapshot_exported(self, export_format: str, record_count: int) -> None:
        self.log(LedgerEventBuilder.snapshot_exported(export_format, record_count))

    def log_snapshot_imported(
        self,
        source_format: str,
        policy: str,
        imported: int,
        replaced: int,
        issues: int,
    ) -> None:
        self.log(LedgerEventBuilder.snapshot_imported(
            source_format=source_format,
            policy=policy,
            imported=imported,
            replaced=replaced,
            issues=issues,
        ))

    def log_mutation_rejected(
        self,
        operation: str,
        error: Exception,
    ) -> None:
        """Log a rejected mutation (validation / not found / bad import)."""
        self.log(LedgerEventBuilder.mutation_rejected(
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
        ))

    def log_persist_failed(
        self,
        keys: list[str],
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        event = LedgerEventBuilder.persist_failed(keys, error_message)
        if details:
            event.details.update(details)
        self.log(event)
