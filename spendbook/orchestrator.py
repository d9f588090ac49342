"""
Main Orchestrator for Spendbook

This module ties the ledger components to persistence and auditing and
is the single entry point a host UI talks to:

1. Load     (store -> normalize -> state)
2. Mutate   (validate -> apply -> persist touched keys -> audit)
3. Import   (parse -> normalize -> merge -> persist -> audit)
4. Export   (state -> JSON snapshot or SpreadsheetML workbook)
5. Views    (state -> pure aggregates)

DESIGN DECISION: The orchestrator enforces the boundaries:
- A rejected operation raises before anything changes, and is audited
- A persistence failure never rolls back memory; it becomes a warning
- Imports are fully parsed before anything is committed
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterator, Optional, Union

import structlog

from spendbook.audit import AuditLogger, configure_logging
from spendbook.config import ExportFormat, ImportMergePolicy, LedgerSettings, get_settings
from spendbook.errors import LedgerError, ValidationError
from spendbook.ledger import CategoryRegistry, ExpenseLedger, LedgerState, TrashStore
from spendbook.models import (
    BucketTotal,
    BudgetSettings,
    BudgetSummary,
    CalendarMonth,
    Category,
    Expense,
    Extremes,
    ImportReport,
    Segment,
    TrashedExpense,
    TrendPoint,
    ValidationIssue,
    default_categories,
)
from spendbook.queries import aggregates, budget
from spendbook.services.storage import (
    STATE_KEYS,
    InMemoryStateStore,
    JsonFileStateStore,
    StateStoreInterface,
    StorageError,
)
from spendbook.transfer import (
    apply_import,
    dumps,
    export_snapshot,
    export_tabular,
    parse_snapshot,
    parse_tabular,
)
from spendbook.validation import RecordNormalizer, normalize_categories, parse_amount


logger = structlog.get_logger("spendbook.orchestrator")


class ExpenseBook:
    """
    Facade over the ledger, trash, categories and settings.

    Every mutating method persists the keys it touched. Reads always
    recompute from the current state.
    """

    def __init__(
        self,
        store: Optional[StateStoreInterface] = None,
        ledger_settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._config = ledger_settings or get_settings().ledger
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

        self._state = LedgerState(
            settings=BudgetSettings(daily_budget=self._config.default_daily_budget),
        )
        self._state.selection.selected_category = self._state.first_category()

        self.categories = CategoryRegistry(self._state, editable=self._config.categories_editable)
        self.ledger = ExpenseLedger(self._state, clock=clock)
        self.trash = TrashStore(self._state)

        self.persistence_warnings: list[str] = []
        self.load_issues: list[ValidationIssue] = []

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def settings(self) -> BudgetSettings:
        return self._state.settings

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    def _today(self, today: Optional[date] = None) -> date:
        return today or self._clock().date()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Load all four keys from the store, repairing what is found.

        Missing or unreadable keys fall back to defaults; a read
        failure is recorded as a persistence warning.
        """
        if self._store is None:
            return

        raw: dict[str, Any] = {}
        for key in STATE_KEYS:
            try:
                raw[key] = self._store.load(key)
            except StorageError as e:
                raw[key] = None
                self._warn([key], f"Could not load {key}: {e}", operation="load")

        issues: list[ValidationIssue] = []
        if self._config.categories_editable:
            categories, category_issues = normalize_categories(raw["categories"])
            issues.extend(category_issues)
        else:
            categories = []
        if not categories:
            categories = default_categories()

        normalizer = RecordNormalizer(
            [c.name for c in categories],
            self._config.default_daily_budget,
            clock=self._clock,
        )
        expenses = normalizer.expenses(raw["expenses"])
        trash = normalizer.trash(raw["trash"])
        settings = normalizer.settings(raw["settings"])
        issues.extend(normalizer.issues)

        (
            self._state.categories,
            self._state.expenses,
            self._state.trash,
            self._state.settings,
        ) = categories, expenses, trash, settings
        self._state.selection = self._state.selection.model_copy(update={
            "selected_category": categories[0].name,
            "draft_category": None,
        })
        self._state.sort_collections()
        self.load_issues = issues

        if issues:
            logger.info("state_repaired_on_load", issue_count=len(issues))
        self._audit.log_state_loaded(len(expenses), len(trash), len(categories))

    def _serialize(self, key: str) -> Any:
        if key == "expenses":
            return [expense.to_record() for expense in self._state.expenses]
        if key == "trash":
            return [item.to_record() for item in self._state.trash]
        if key == "settings":
            return self._state.settings.to_record()
        return [category.to_record() for category in self._state.categories]

    def _warn(self, keys: list[str], message: str, operation: str = "save") -> None:
        self.persistence_warnings.append(message)
        self._audit.log_persist_failed(keys, message, details={"operation": operation})

    def _persist(self, *keys: str) -> None:
        if self._store is None:
            return
        failed = self._store.save_many({key: self._serialize(key) for key in keys})
        if failed:
            self._warn(failed, f"Could not save {', '.join(failed)}")

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[None]:
        try:
            yield
        except LedgerError as e:
            self._audit.log_mutation_rejected(operation, e)
            raise

    # -------------------------------------------------------------------------
    # Expenses & trash
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        title: Optional[str],
        amount: Any,
        day: date,
        category: Optional[str] = None,
    ) -> Expense:
        with self._mutation("add_expense"):
            expense = self.ledger.add(title, amount, day, category)
        self._persist("expenses")
        self._audit.log_expense_added(expense.id, str(expense.amount), expense.category)
        return expense

    def edit_expense(
        self,
        expense_id: str,
        title: Optional[str],
        amount: Any,
        category: Optional[str] = None,
    ) -> Expense:
        with self._mutation("edit_expense"):
            before = self.ledger.get(expense_id)
            after = self.ledger.edit(expense_id, title, amount, category)

        changes = {
            field: {"from": str(getattr(before, field)), "to": str(getattr(after, field))}
            for field in ("title", "amount", "category")
            if getattr(before, field) != getattr(after, field)
        }
        self._persist("expenses")
        self._audit.log_expense_edited(expense_id, changes)
        return after

    def delete_expense(self, expense_id: str) -> TrashedExpense:
        """Soft-delete: the expense moves to the trash."""
        with self._mutation("delete_expense"):
            trashed = self.ledger.soft_delete(expense_id)
        self._persist("expenses", "trash")
        self._audit.log_expense_trashed(expense_id)
        return trashed

    def restore_expense(self, expense_id: str) -> Expense:
        with self._mutation("restore_expense"):
            expense = self.trash.restore(expense_id)
        self._persist("expenses", "trash")
        self._audit.log_expense_restored(expense_id, expense.category)
        return expense

    def purge_expense(self, expense_id: str) -> TrashedExpense:
        with self._mutation("purge_expense"):
            removed = self.trash.purge(expense_id)
        self._persist("trash")
        self._audit.log_expense_purged(expense_id)
        return removed

    def empty_trash(self) -> int:
        count = self.trash.empty()
        if count:
            self._persist("trash")
        self._audit.log_trash_emptied(count)
        return count

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, name: str, color: Optional[str] = None) -> Category:
        with self._mutation("add_category"):
            category = self.categories.add(name, color)
        self._persist("categories")
        self._audit.log_category_added(category.name)
        return category

    def rename_category(self, old_name: str, new_name: str, color: Optional[str] = None) -> Category:
        """Rename and/or recolor; expenses and trash follow the new name."""
        with self._mutation("rename_category"):
            category, cascaded = self.categories.rename(old_name, new_name, color)

        if cascaded:
            self._persist("categories", "expenses", "trash")
        else:
            self._persist("categories")
        self._audit.log_category_renamed(old_name, category.name, cascaded)
        return category

    def reorder_category(self, index: int, delta: int) -> list[Category]:
        with self._mutation("reorder_category"):
            before = self.categories.categories
            after = self.categories.reorder(index, delta)

        if after != before:
            self._persist("categories")
            self._audit.log_category_reordered(before[index].name, index, index + delta)
        return after

    def remove_category(self, index: int) -> Category:
        with self._mutation("remove_category"):
            removed = self.categories.remove(index)
        self._persist("categories")
        self._audit.log_category_removed(removed.name)
        return removed

    def select_category(self, name: Optional[str]) -> str:
        return self.categories.select(name)

    def set_draft_category(self, name: Optional[str]) -> Optional[str]:
        return self.categories.set_draft_category(name)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_settings(self, daily_budget: Any, monthly_budget: Any = None) -> BudgetSettings:
        """
        Replace the budget targets.

        A monthly budget of None or 0 means "derive from the daily one".

        Raises:
            ValidationError: If daily is not positive or monthly is negative
        """
        with self._mutation("update_settings"):
            daily = parse_amount(daily_budget)
            if daily is None or daily <= 0:
                raise ValidationError("Daily budget must be a positive number", field="daily_budget")

            monthly = Decimal("0")
            if monthly_budget not in (None, ""):
                monthly = parse_amount(monthly_budget)
                if monthly is None or monthly < 0:
                    raise ValidationError(
                        "Monthly budget must be zero or a positive number",
                        field="monthly_budget",
                    )

            settings = BudgetSettings(daily_budget=daily, monthly_budget=monthly)

        self._state.settings = settings
        self._persist("settings")
        self._audit.log_settings_updated(str(settings.daily_budget), str(settings.monthly_budget))
        return settings

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export(
        self,
        export_format: Optional[ExportFormat] = None,
        start: Optional[aggregates.DateLike] = None,
        end: Optional[aggregates.DateLike] = None,
    ) -> str:
        """
        Export the ledger.

        JSON exports everything. Tabular exports expenses between start
        and end, which default to the first and last recorded day.

        Raises:
            ValidationError: If a tabular range holds no expenses
        """
        export_format = ExportFormat(export_format or self._config.export_format)

        if export_format == ExportFormat.JSON:
            text = dumps(export_snapshot(self._state, clock=self._clock))
            self._audit.log_snapshot_exported(export_format.value, len(self._state.expenses))
            return text

        days = [expense.timestamp.date() for expense in self._state.expenses]
        start = start if start is not None else (min(days) if days else self._today())
        end = end if end is not None else (max(days) if days else self._today())
        with self._mutation("export"):
            text = export_tabular(self._state.expenses, start, end)
        count = len(aggregates.filter_by_range(self._state.expenses, start, end))
        self._audit.log_snapshot_exported(export_format.value, count)
        return text

    def import_payload(
        self,
        raw: Union[str, bytes],
        import_format: Optional[ExportFormat] = None,
        policy: Optional[ImportMergePolicy] = None,
    ) -> ImportReport:
        """
        Import a JSON snapshot or a tabular workbook.

        Raises:
            FormatError: If the payload cannot be parsed at all
            ValidationError: If nothing importable was found
        """
        import_format = ExportFormat(import_format or self._config.export_format)
        policy = ImportMergePolicy(policy or self._config.import_merge_policy)

        with self._mutation("import"):
            if import_format == ExportFormat.JSON:
                batch = parse_snapshot(
                    raw,
                    self._state.category_names(),
                    self._config.default_daily_budget,
                    use_snapshot_categories=(
                        self._config.categories_editable and policy == ImportMergePolicy.REPLACE
                    ),
                    clock=self._clock,
                )
            else:
                batch = parse_tabular(raw, self._state.category_names())

        report = apply_import(self._state, batch, policy)

        if policy == ImportMergePolicy.DATE_MERGE or import_format == ExportFormat.TABULAR:
            self._persist("expenses")
        else:
            self._persist(*STATE_KEYS)

        self._audit.log_snapshot_imported(
            source_format=report.source_format,
            policy=report.policy,
            imported=report.imported_expenses,
            replaced=report.replaced_expenses,
            issues=len(report.issues),
        )
        return report

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def records_on(self, day: aggregates.DateLike) -> list[Expense]:
        return self.ledger.records_on(day)

    def filter_by_range(self, start: aggregates.DateLike, end: aggregates.DateLike) -> list[Expense]:
        return self.ledger.filter_by_range(start, end)

    def total_for_range(self, start: aggregates.DateLike, end: aggregates.DateLike) -> Decimal:
        return aggregates.total_amount(self.filter_by_range(start, end))

    def category_totals(
        self,
        start: Optional[aggregates.DateLike] = None,
        end: Optional[aggregates.DateLike] = None,
    ) -> dict[str, Decimal]:
        records = self._state.expenses
        if start is not None and end is not None:
            records = aggregates.filter_by_range(records, start, end)
        return aggregates.group_by_category(records)

    def category_usage(self) -> dict[str, int]:
        return aggregates.category_usage(self._state.expenses)

    def daily_trend(self, window_days: Optional[int] = None, today: Optional[date] = None) -> list[TrendPoint]:
        window = window_days or self._config.trend_window_days
        return aggregates.daily_trend(self._state.expenses, window, self._today(today))

    def monthly_totals(self, year: int) -> list[BucketTotal]:
        return aggregates.monthly_totals(self._state.expenses, year)

    def yearly_totals(self, today: Optional[date] = None) -> list[BucketTotal]:
        return aggregates.yearly_totals(self._state.expenses, self._today(today))

    def available_years(self, today: Optional[date] = None) -> list[int]:
        return aggregates.available_years(self._state.expenses, self._today(today))

    def available_months(self, today: Optional[date] = None) -> list[tuple[int, int]]:
        return aggregates.available_months(self._state.expenses, self._today(today))

    def weekly_segments(
        self,
        month: Optional[tuple[int, int]] = None,
        today: Optional[date] = None,
    ) -> list[Segment]:
        return aggregates.weekly_segments(self._state.expenses, month, self._today(today))

    def calendar_month(self, year: int, month: int, today: Optional[date] = None) -> CalendarMonth:
        return aggregates.calendar_month(self._state.expenses, year, month, self._today(today))

    def extremes(
        self,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Extremes:
        return aggregates.extremes(self._state.expenses, window_start, window_end, self._today(today))

    def budget_summary(self, day: Optional[date] = None, today: Optional[date] = None) -> BudgetSummary:
        return budget.budget_summary(self._state.expenses, self._state.settings, day, self._today(today))


def create_expense_book(use_storage: bool = True) -> ExpenseBook:
    """
    Factory function to create a loaded ExpenseBook.

    Args:
        use_storage: Whether to persist to JSON files in the configured
                     data directory. Set to False for a throwaway
                     in-memory session.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    store: StateStoreInterface
    if use_storage:
        store = JsonFileStateStore(settings.storage)
    else:
        store = InMemoryStateStore()

    book = ExpenseBook(
        store=store,
        ledger_settings=settings.ledger,
        audit_logger=AuditLogger(),
    )
    book.load()
    return book
