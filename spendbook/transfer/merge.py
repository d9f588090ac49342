"""
Import Reconciliation

An import is parsed and normalized into an ImportBatch first; only a
complete batch is ever applied. Applying computes every new collection
before assigning any of them, so a failed import cannot leave a
partially merged ledger behind.

POLICIES:
- replace:    each section the payload carries (ledger, trash, settings,
              categories) is replaced wholesale; absent sections are kept.
- date_merge: for each calendar date present in the import, existing
              expenses on that date are dropped and replaced by the
              imported ones. Other dates, the trash and the settings
              are untouched.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from spendbook.config import ImportMergePolicy
from spendbook.ledger.state import LedgerState
from spendbook.models.expense import (
    BudgetSettings,
    Category,
    Expense,
    ImportReport,
    TrashedExpense,
    ValidationIssue,
    new_id,
)


class ImportBatch(BaseModel):
    """A fully parsed and normalized import, ready to apply."""

    source_format: str
    expenses: Optional[list[Expense]] = None
    trash: Optional[list[TrashedExpense]] = None
    settings: Optional[BudgetSettings] = None
    categories: Optional[list[Category]] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    def dates(self) -> list[date]:
        return sorted({expense.timestamp.date() for expense in self.expenses or []})


def _with_fresh_ids(expenses: list[Expense], taken: set[str]) -> list[Expense]:
    """Give imported expenses new ids where they clash with kept records."""
    result = []
    for expense in expenses:
        if expense.id in taken:
            expense = expense.model_copy(update={"id": new_id()})
        taken.add(expense.id)
        result.append(expense)
    return result


def apply_import(
    state: LedgerState,
    batch: ImportBatch,
    policy: ImportMergePolicy,
) -> ImportReport:
    """
    Commit a batch to the state according to the merge policy.

    Returns:
        ImportReport describing what changed
    """
    imported = sorted(batch.expenses or [], key=lambda e: e.timestamp)
    report = ImportReport(
        source_format=batch.source_format,
        policy=policy.value,
        imported_expenses=len(imported),
        affected_dates=[day.isoformat() for day in batch.dates()],
        issues=list(batch.issues),
    )

    if policy == ImportMergePolicy.DATE_MERGE:
        affected = set(batch.dates())
        preserved = [e for e in state.expenses if e.timestamp.date() not in affected]
        taken = {e.id for e in preserved} | {t.id for t in state.trash}
        expenses = preserved + _with_fresh_ids(imported, taken)
        report.replaced_expenses = len(state.expenses) - len(preserved)

        state.expenses = sorted(expenses, key=lambda e: e.timestamp, reverse=True)
        return report

    trash = batch.trash if batch.trash is not None else state.trash
    settings = batch.settings if batch.settings is not None else state.settings
    categories = batch.categories if batch.categories else state.categories
    names = {c.name for c in categories}
    if batch.expenses is None:
        expenses = [
            e if e.category in names else e.model_copy(update={"category": categories[0].name})
            for e in state.expenses
        ]
    else:
        expenses = _with_fresh_ids(imported, {t.id for t in trash})

    selection = state.selection
    if selection.selected_category and selection.selected_category not in names:
        selection = selection.model_copy(update={"selected_category": categories[0].name})
    if selection.draft_category and selection.draft_category not in names:
        selection = selection.model_copy(update={"draft_category": categories[0].name})

    report.replaced_expenses = len(state.expenses) if batch.expenses is not None else 0
    report.imported_trash = len(batch.trash) if batch.trash is not None else 0

    (
        state.expenses,
        state.trash,
        state.settings,
        state.categories,
        state.selection,
    ) = (
        sorted(expenses, key=lambda e: e.timestamp, reverse=True),
        sorted(trash, key=lambda t: t.deleted_at, reverse=True),
        settings,
        list(categories),
        selection,
    )
    return report
