"""
Trash Store

Soft-deleted expenses wait here until restored or purged. There is no
size limit and nothing expires on its own.
"""

from spendbook.errors import NotFoundError
from spendbook.ledger.state import LedgerState
from spendbook.models.expense import Expense, TrashedExpense


class TrashStore:
    """Restore and purge operations over the trash."""

    def __init__(self, state: LedgerState):
        self._state = state

    @property
    def items(self) -> list[TrashedExpense]:
        return list(self._state.trash)

    def __len__(self) -> int:
        return len(self._state.trash)

    def get(self, expense_id: str) -> TrashedExpense:
        index = self._state.trash_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No trashed expense with id {expense_id!r}")
        return self._state.trash[index]

    def restore(self, expense_id: str) -> Expense:
        """
        Move a trashed expense back to the head of the ledger.

        Id, title, amount and timestamp are preserved. If its category
        was removed in the meantime it is re-homed to the first
        category, like any other ledger write.

        Raises:
            NotFoundError: If the trash holds no record with this id
        """
        index = self._state.trash_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No trashed expense with id {expense_id!r}")

        expense = self._state.trash[index].to_expense()
        category = self._state.resolve_category(expense.category)
        if category != expense.category:
            expense = expense.model_copy(update={"category": category})

        trash = [t for i, t in enumerate(self._state.trash) if i != index]
        expenses = [expense, *self._state.expenses]
        self._state.trash, self._state.expenses = trash, expenses
        return expense

    def purge(self, expense_id: str) -> TrashedExpense:
        """
        Permanently delete a trashed expense.

        Raises:
            NotFoundError: If the trash holds no record with this id
        """
        index = self._state.trash_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No trashed expense with id {expense_id!r}")

        removed = self._state.trash[index]
        self._state.trash = [t for i, t in enumerate(self._state.trash) if i != index]
        return removed

    def empty(self) -> int:
        """Purge everything; returns how many records were removed."""
        count = len(self._state.trash)
        self._state.trash = []
        return count
