"""
Tests for configuration and the audit logger.
"""

import pytest
from decimal import Decimal
from pathlib import Path

from spendbook.audit import AuditLogger
from spendbook.config import (
    AppSettings,
    ExportFormat,
    ImportMergePolicy,
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from spendbook.models import LedgerEventType


class TestSettings:
    """Tests for environment-driven settings."""

    def test_ledger_defaults(self, monkeypatch):
        """Test the default feature switches."""
        for name in ("CATEGORIES_EDITABLE", "EXPORT_FORMAT", "IMPORT_MERGE_POLICY", "DEFAULT_DAILY_BUDGET"):
            monkeypatch.delenv(f"SPENDBOOK_LEDGER_{name}", raising=False)
        settings = LedgerSettings()

        assert settings.categories_editable is True
        assert settings.export_format == ExportFormat.JSON
        assert settings.import_merge_policy == ImportMergePolicy.REPLACE
        assert settings.default_daily_budget == Decimal("30")

    def test_ledger_from_environment(self, monkeypatch):
        """Test the variant switches are read from the environment."""
        monkeypatch.setenv("SPENDBOOK_LEDGER_CATEGORIES_EDITABLE", "false")
        monkeypatch.setenv("SPENDBOOK_LEDGER_EXPORT_FORMAT", "tabular")
        monkeypatch.setenv("SPENDBOOK_LEDGER_IMPORT_MERGE_POLICY", "date_merge")
        settings = LedgerSettings()

        assert settings.categories_editable is False
        assert settings.export_format == ExportFormat.TABULAR
        assert settings.import_merge_policy == ImportMergePolicy.DATE_MERGE

    def test_storage_expands_home(self, monkeypatch):
        """Test ~ in the data directory is expanded."""
        monkeypatch.setenv("SPENDBOOK_STORAGE_DATA_DIR", "~/spendbook-data")
        assert StorageSettings().data_dir == Path("~/spendbook-data").expanduser()

    def test_log_level_validated(self):
        """Test log levels are normalized and checked."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            AppSettings(log_level="loud")

    def test_validate_all_settings(self):
        """Test every section reports as loadable by default."""
        get_settings.cache_clear()
        results = validate_all_settings()
        assert results["storage"] and results["ledger"] and results["app"]


class TestAuditLogger:
    """Tests for the in-memory audit history."""

    def test_history_is_bounded(self):
        """Test only the most recent events are kept."""
        audit = AuditLogger(history_size=3)
        for count in range(5):
            audit.log_trash_emptied(count)

        history = audit.history
        assert len(history) == 3
        assert [event.details["count"] for event in history] == [2, 3, 4]

    def test_rejection_records_error(self):
        """Test a rejected mutation keeps the error type and message."""
        audit = AuditLogger()
        audit.log_mutation_rejected("add_expense", ValueError("bad amount"))

        event = audit.history[-1]
        assert event.event_type == LedgerEventType.MUTATION_REJECTED
        assert event.details["error_type"] == "ValueError"
        assert event.error_message == "bad amount"

    def test_persist_failed_details(self):
        """Test extra details are merged into the failure event."""
        audit = AuditLogger()
        audit.log_persist_failed(["trash"], "disk full", details={"operation": "save"})

        event = audit.history[-1]
        assert event.details == {"keys": ["trash"], "operation": "save"}
