"""
Category Registry

An ordered set of named, colored categories. Order matters: the first
category is the fallback for any unknown category name.

RULES:
- Names are unique (case-sensitive) and never blank
- The last category can never be removed
- A category used by any active expense can never be removed
- Renaming cascades to every expense, trashed expense and to the
  caller's selection in one step
"""

from typing import Optional

from spendbook.errors import NotFoundError, ValidationError
from spendbook.ledger.state import LedgerState
from spendbook.models.expense import DEFAULT_CATEGORY_COLOR, Category
from spendbook.validation.validator import build_model, clean_category_name


class CategoryRegistry:
    """Category management over a ledger state."""

    def __init__(self, state: LedgerState, editable: bool = True):
        self._state = state
        self._editable = editable

    @property
    def categories(self) -> list[Category]:
        return list(self._state.categories)

    @property
    def editable(self) -> bool:
        return self._editable

    def _require_editable(self) -> None:
        if not self._editable:
            raise ValidationError("Categories are fixed in this configuration", field="categories")

    def _category_at(self, index: int) -> Category:
        if not 0 <= index < len(self._state.categories):
            raise NotFoundError(f"No category at index {index}")
        return self._state.categories[index]

    def index_of(self, name: str) -> int:
        for index, category in enumerate(self._state.categories):
            if category.name == name:
                return index
        raise NotFoundError(f"No category named {name!r}")

    def usage_count(self, name: str) -> int:
        """Active expenses (not trash) using this category."""
        return sum(1 for expense in self._state.expenses if expense.category == name)

    def add(self, name: str, color: Optional[str] = None) -> Category:
        """
        Append a category.

        If the caller has no category selected, the new one becomes
        the selection.

        Raises:
            ValidationError: If the name is blank or already taken
        """
        self._require_editable()
        cleaned = clean_category_name(name)
        if self._state.has_category(cleaned):
            raise ValidationError(f"Category {cleaned!r} already exists", field="name")

        category = build_model(Category, name=cleaned, color=color or DEFAULT_CATEGORY_COLOR)
        self._state.categories = [*self._state.categories, category]
        if not self._state.selection.selected_category:
            self._state.selection = self._state.selection.model_copy(
                update={"selected_category": cleaned}
            )
        return category

    def rename(
        self,
        old_name: str,
        new_name: str,
        color: Optional[str] = None,
    ) -> tuple[Category, int]:
        """
        Rename (and optionally recolor) a category.

        Returns:
            (updated category, number of expense + trash records rewritten)

        Raises:
            NotFoundError: If old_name is not registered
            ValidationError: If new_name is blank or owned by another category
        """
        self._require_editable()
        index = self.index_of(old_name)
        cleaned = clean_category_name(new_name)
        if any(i != index and c.name == cleaned for i, c in enumerate(self._state.categories)):
            raise ValidationError(f"Category {cleaned!r} already exists", field="name")

        target = self._state.categories[index]
        updated = build_model(Category, name=cleaned, color=color or target.color)
        if updated == target:
            return target, 0

        categories = list(self._state.categories)
        categories[index] = updated

        if cleaned == old_name:
            self._state.categories = categories
            return updated, 0

        cascaded = 0
        expenses = []
        for expense in self._state.expenses:
            if expense.category == old_name:
                expense = expense.model_copy(update={"category": cleaned})
                cascaded += 1
            expenses.append(expense)
        trash = []
        for item in self._state.trash:
            if item.category == old_name:
                item = item.model_copy(update={"category": cleaned})
                cascaded += 1
            trash.append(item)

        selection = self._state.selection
        selection = selection.model_copy(update={
            "selected_category": cleaned if selection.selected_category == old_name else selection.selected_category,
            "draft_category": cleaned if selection.draft_category == old_name else selection.draft_category,
        })

        (
            self._state.categories,
            self._state.expenses,
            self._state.trash,
            self._state.selection,
        ) = categories, expenses, trash, selection
        return updated, cascaded

    def reorder(self, index: int, delta: int) -> list[Category]:
        """
        Move the category at index by delta positions.

        A move that would leave the list is ignored.
        """
        self._require_editable()
        target_index = index + delta
        count = len(self._state.categories)
        if not 0 <= index < count or not 0 <= target_index < count:
            return self.categories

        categories = list(self._state.categories)
        moved = categories.pop(index)
        categories.insert(target_index, moved)
        self._state.categories = categories
        return self.categories

    def remove(self, index: int) -> Category:
        """
        Remove the category at index.

        Any selection pointing at it falls back to the new first
        category.

        Raises:
            NotFoundError: If index is out of range
            ValidationError: If it is the last category or still in use
        """
        self._require_editable()
        target = self._category_at(index)
        if len(self._state.categories) <= 1:
            raise ValidationError("At least one category must remain", field="categories")
        usage = self.usage_count(target.name)
        if usage > 0:
            raise ValidationError(
                f"Category {target.name!r} is used by {usage} expense(s)",
                field="categories",
            )

        categories = [c for i, c in enumerate(self._state.categories) if i != index]
        fallback = categories[0].name
        selection = self._state.selection
        selection = selection.model_copy(update={
            "selected_category": fallback if selection.selected_category == target.name else selection.selected_category,
            "draft_category": fallback if selection.draft_category == target.name else selection.draft_category,
        })
        self._state.categories, self._state.selection = categories, selection
        return target

    def select(self, name: Optional[str]) -> str:
        """Set the caller's selected category, resolving unknown names."""
        resolved = self._state.resolve_category(name)
        self._state.selection = self._state.selection.model_copy(update={"selected_category": resolved})
        return resolved

    def set_draft_category(self, name: Optional[str]) -> Optional[str]:
        """Set (or clear, with None) the category of an edit draft."""
        resolved = self._state.resolve_category(name) if name is not None else None
        self._state.selection = self._state.selection.model_copy(update={"draft_category": resolved})
        return resolved
