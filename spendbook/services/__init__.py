"""Services package."""

from spendbook.services.storage import (
    STATE_KEYS,
    CorruptDataError,
    InMemoryStateStore,
    JsonFileStateStore,
    StateStoreInterface,
    StorageError,
    UnknownKeyError,
)

__all__ = [
    "STATE_KEYS",
    "CorruptDataError",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "StateStoreInterface",
    "StorageError",
    "UnknownKeyError",
]
