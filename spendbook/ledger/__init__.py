"""Ledger package: state container, categories, expenses and trash."""

from spendbook.ledger.expenses import ExpenseLedger
from spendbook.ledger.registry import CategoryRegistry
from spendbook.ledger.state import LedgerState
from spendbook.ledger.trash import TrashStore

__all__ = [
    "CategoryRegistry",
    "ExpenseLedger",
    "LedgerState",
    "TrashStore",
]
