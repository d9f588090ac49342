"""Configuration package."""

from spendbook.config.settings import (
    AppSettings,
    ExportFormat,
    ImportMergePolicy,
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ExportFormat",
    "ImportMergePolicy",
    "LedgerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
