"""
Storage Services Package

Provides the abstract state store interface and its implementations:
JSON files on disk for the app, a dict-backed store for tests.
"""

from spendbook.services.storage.interface import (
    STATE_KEYS,
    CorruptDataError,
    InMemoryStateStore,
    StateStoreInterface,
    StorageError,
    UnknownKeyError,
)
from spendbook.services.storage.json_file import JsonFileStateStore

__all__ = [
    # Interfaces
    "STATE_KEYS",
    "StateStoreInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    "UnknownKeyError",
    # Implementations
    "InMemoryStateStore",
    "JsonFileStateStore",
]
