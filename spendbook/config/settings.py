"""
Configuration Management for Spendbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The feature switches that distinguish the app variants (editable
categories, export format, import merge policy) live next to the
storage and logging knobs so one place describes the whole setup.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExportFormat(str, Enum):
    """Artifact produced by an export."""
    JSON = "json"
    TABULAR = "tabular"


class ImportMergePolicy(str, Enum):
    """How an imported payload is combined with the current ledger."""
    REPLACE = "replace"
    DATE_MERGE = "date_merge"


class StorageSettings(BaseSettings):
    """Local state store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPENDBOOK_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON file per persisted key"
    )
    fsync_writes: bool = Field(
        default=True,
        description="fsync files after writing them"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per read/write before reporting a persistence error"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Expand ~ so env values like ~/.spendbook work."""
        return v.expanduser()


class LedgerSettings(BaseSettings):
    """Ledger behaviour switches."""

    model_config = SettingsConfigDict(
        env_prefix="SPENDBOOK_LEDGER_",
        extra="ignore"
    )

    categories_editable: bool = Field(
        default=True,
        description="Allow adding, renaming, reordering and removing categories"
    )
    export_format: ExportFormat = Field(
        default=ExportFormat.JSON,
        description="Format produced by export"
    )
    import_merge_policy: ImportMergePolicy = Field(
        default=ImportMergePolicy.REPLACE,
        description="How imports are combined with existing records"
    )
    default_daily_budget: Decimal = Field(
        default=Decimal("30"),
        gt=0,
        description="Daily budget used when none (or an invalid one) is stored"
    )
    trend_window_days: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Default window for the daily trend view"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPENDBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings sections load.

    Returns a dict of {section_name: is_valid} plus "<section>_error"
    entries holding the message for sections that failed.
    """
    results = {}
    settings = get_settings()

    for section in ("storage", "ledger", "app"):
        try:
            getattr(settings, section)
            results[section] = True
        except ValueError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
