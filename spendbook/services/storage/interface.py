"""
Abstract Storage Interface

DESIGN DECISION: The ledger never touches files directly. It talks to
a state store through this interface, which allows us to:
1. Keep the JSON files on disk for the real app
2. Use in-memory storage for testing
3. Swap in another backend without touching ledger logic

The interface is intentionally tiny: four independent keys, each
holding a JSON-shaped value. Parsing those values into models is the
ledger's job, so a store never needs to know about expenses.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from spendbook.errors import PersistenceError


STATE_KEYS = ("expenses", "settings", "trash", "categories")


class StorageError(PersistenceError):
    """Base exception for storage operations."""
    pass


class UnknownKeyError(StorageError):
    """A key outside STATE_KEYS was requested."""
    pass


class CorruptDataError(StorageError):
    """A stored value exists but is not valid JSON."""
    pass


class StateStoreInterface(ABC):
    """
    Abstract interface for persisted ledger state.

    Any storage implementation must implement load() and save().
    Absent keys load as None; callers fall back to defaults.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """
        Load the value stored under a key.

        Returns:
            The decoded JSON value, or None if nothing is stored

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    def load_all(self) -> dict[str, Optional[Any]]:
        """Load every key; absent keys map to None."""
        return {key: self.load(key) for key in STATE_KEYS}

    def save_many(self, values: dict[str, Any]) -> list[str]:
        """
        Save several keys, continuing past failures.

        Returns:
            Keys that failed to save
        """
        failed = []
        for key, value in values.items():
            try:
                self.save(key, value)
            except StorageError:
                failed.append(key)
        return failed

    @staticmethod
    def check_key(key: str) -> None:
        if key not in STATE_KEYS:
            raise UnknownKeyError(f"Unknown state key: {key!r}")


class InMemoryStateStore(StateStoreInterface):
    """
    Dict-backed store for tests and throwaway sessions.

    Values are deep-copied in and out so callers cannot alias the
    stored state.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._values: dict[str, Any] = {}
        self.save_count = 0
        for key, value in (initial or {}).items():
            self.check_key(key)
            self._values[key] = copy.deepcopy(value)

    def load(self, key: str) -> Optional[Any]:
        self.check_key(key)
        return copy.deepcopy(self._values.get(key))

    def save(self, key: str, value: Any) -> None:
        self.check_key(key)
        self._values[key] = copy.deepcopy(value)
        self.save_count += 1

    def keys(self) -> Iterable[str]:
        return list(self._values)
