"""
Error kinds raised by the ledger core.

Validation and not-found failures are raised BEFORE any state changes,
so callers can surface them as rejected submissions. Persistence
failures are reported after the in-memory mutation and never undo it.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Bad input: blank title, sub-minimum amount, bad category operation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(LedgerError):
    """An id or index is absent from the target collection."""
    pass


class FormatError(LedgerError):
    """An import payload is not parseable as the expected format."""
    pass


class PersistenceError(LedgerError):
    """The underlying store failed to read or write."""
    pass
