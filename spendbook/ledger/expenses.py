"""
Expense Ledger

Add, edit and soft-delete active expenses. Every operation validates
first and only then swaps in the new collections; a rejected call
raises and leaves the state untouched.
"""

from datetime import date, datetime
from typing import Any, Callable, Optional

from spendbook.errors import NotFoundError
from spendbook.ledger.state import LedgerState
from spendbook.models.expense import Expense, TrashedExpense
from spendbook.queries import aggregates
from spendbook.validation.validator import build_model, clean_title, require_amount


class ExpenseLedger:
    """Mutations and lookups over the active expenses."""

    def __init__(
        self,
        state: LedgerState,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._state = state
        self._clock = clock

    @property
    def records(self) -> list[Expense]:
        return list(self._state.expenses)

    def get(self, expense_id: str) -> Expense:
        index = self._state.expense_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No expense with id {expense_id!r}")
        return self._state.expenses[index]

    def add(
        self,
        title: Optional[str],
        amount: Any,
        day: date,
        category: Optional[str] = None,
    ) -> Expense:
        """
        Record a new expense at the head of the ledger.

        The timestamp is the given calendar day at the current time of
        day. An unknown category falls back to the first category.

        Raises:
            ValidationError: If amount is below 1 or not a number
        """
        checked_amount = require_amount(amount)
        final_title = clean_title(title, allow_placeholder=True)
        final_category = self._state.resolve_category(category)

        now = self._clock()
        if isinstance(day, datetime):
            day = day.date()

        expense = build_model(
            Expense,
            title=final_title,
            amount=checked_amount,
            timestamp=datetime.combine(day, now.time()),
            category=final_category,
        )
        self._state.expenses = [expense, *self._state.expenses]
        return expense

    def edit(
        self,
        expense_id: str,
        title: Optional[str],
        amount: Any,
        category: Optional[str] = None,
    ) -> Expense:
        """
        Replace title, amount and category of an expense.

        The id and timestamp never change.

        Raises:
            NotFoundError: If no expense has this id
            ValidationError: If amount is below 1 or the title is blank
        """
        index = self._state.expense_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No expense with id {expense_id!r}")

        checked_amount = require_amount(amount)
        final_title = clean_title(title, allow_placeholder=False)
        final_category = self._state.resolve_category(category)

        current = self._state.expenses[index]
        updated = build_model(
            Expense,
            **{
                **current.model_dump(),
                "title": final_title,
                "amount": checked_amount,
                "category": final_category,
            },
        )

        expenses = list(self._state.expenses)
        expenses[index] = updated
        self._state.expenses = expenses
        return updated

    def soft_delete(self, expense_id: str) -> TrashedExpense:
        """
        Move an expense to the head of the trash.

        Raises:
            NotFoundError: If no expense has this id
        """
        index = self._state.expense_index(expense_id)
        if index == -1:
            raise NotFoundError(f"No expense with id {expense_id!r}")

        expense = self._state.expenses[index]
        trashed = TrashedExpense.from_expense(expense, deleted_at=self._clock())

        expenses = [e for i, e in enumerate(self._state.expenses) if i != index]
        trash = [trashed, *self._state.trash]
        self._state.expenses, self._state.trash = expenses, trash
        return trashed

    def filter_by_range(self, start: aggregates.DateLike, end: aggregates.DateLike) -> list[Expense]:
        return aggregates.filter_by_range(self._state.expenses, start, end)

    def records_on(self, day: aggregates.DateLike) -> list[Expense]:
        return aggregates.records_on(self._state.expenses, day)

    @staticmethod
    def total_amount(records: list[Expense]):
        return aggregates.total_amount(records)
