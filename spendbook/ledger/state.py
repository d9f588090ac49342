"""
Ledger State Container

Holds the four persisted collections (expenses, trash, categories,
settings) plus the caller's category selection.

DESIGN DECISION: Operations never mutate a collection in place. They
build the new list(s) and assign them in one step, so a reader never
sees a record in both the ledger and the trash, or a half-applied
category rename.
"""

from typing import Optional

from pydantic import BaseModel, Field

from spendbook.errors import ValidationError
from spendbook.models.expense import (
    BudgetSettings,
    Category,
    Expense,
    Selection,
    TrashedExpense,
    default_categories,
)


class LedgerState(BaseModel):
    """Everything the ledger knows, in one place."""

    expenses: list[Expense] = Field(default_factory=list)
    trash: list[TrashedExpense] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=default_categories)
    settings: BudgetSettings = Field(default_factory=BudgetSettings)
    selection: Selection = Field(default_factory=Selection)

    def category_names(self) -> list[str]:
        return [category.name for category in self.categories]

    def has_category(self, name: Optional[str]) -> bool:
        return name is not None and any(category.name == name for category in self.categories)

    def first_category(self) -> str:
        if not self.categories:
            raise ValidationError("No categories are registered", field="category")
        return self.categories[0].name

    def resolve_category(self, name: Optional[str]) -> str:
        """The given category if it exists, otherwise the first one."""
        if name is not None:
            name = name.strip()
        if self.has_category(name):
            return name
        return self.first_category()

    def expense_index(self, expense_id: str) -> int:
        for index, expense in enumerate(self.expenses):
            if expense.id == expense_id:
                return index
        return -1

    def trash_index(self, expense_id: str) -> int:
        for index, item in enumerate(self.trash):
            if item.id == expense_id:
                return index
        return -1

    def sort_collections(self) -> None:
        """Ledger newest first by timestamp, trash newest first by deletion."""
        self.expenses = sorted(self.expenses, key=lambda e: e.timestamp, reverse=True)
        self.trash = sorted(self.trash, key=lambda t: t.deleted_at, reverse=True)
