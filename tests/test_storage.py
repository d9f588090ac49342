"""
Tests for the state stores.
"""

import json
import pytest

from spendbook.config import StorageSettings
from spendbook.services.storage import (
    STATE_KEYS,
    CorruptDataError,
    InMemoryStateStore,
    JsonFileStateStore,
    StorageError,
    UnknownKeyError,
)


@pytest.fixture
def file_store(tmp_path):
    return JsonFileStateStore(StorageSettings(data_dir=tmp_path, fsync_writes=False, retry_attempts=2))


class TestInMemoryStateStore:
    """Tests for the dict-backed store."""

    def test_absent_key_is_none(self):
        """Test keys that were never saved load as None."""
        assert InMemoryStateStore().load("expenses") is None

    def test_values_are_copied(self):
        """Test callers cannot alias stored values."""
        store = InMemoryStateStore()
        value = [{"id": "a"}]
        store.save("expenses", value)
        value[0]["id"] = "changed"

        assert store.load("expenses") == [{"id": "a"}]

    def test_unknown_key(self):
        """Test only the four state keys are accepted."""
        with pytest.raises(UnknownKeyError):
            InMemoryStateStore().save("budget", {})

    def test_load_all(self):
        """Test load_all returns every key."""
        store = InMemoryStateStore({"settings": {"dailyBudget": 30}})
        values = store.load_all()

        assert set(values) == set(STATE_KEYS)
        assert values["settings"] == {"dailyBudget": 30}
        assert values["expenses"] is None


class TestJsonFileStateStore:
    """Tests for the JSON file store."""

    def test_save_and_load(self, file_store, tmp_path):
        """Test a saved value is written as UTF-8 JSON and read back."""
        file_store.save("categories", [{"name": "吃饭", "color": "#22c55e"}])

        path = tmp_path / "categories.json"
        assert "吃饭" in path.read_text(encoding="utf-8")
        assert file_store.load("categories") == [{"name": "吃饭", "color": "#22c55e"}]

    def test_missing_file(self, file_store):
        """Test a missing file loads as None."""
        assert file_store.load("trash") is None

    def test_empty_file(self, file_store, tmp_path):
        """Test an empty file loads as None."""
        (tmp_path / "trash.json").write_text("  ", encoding="utf-8")
        assert file_store.load("trash") is None

    def test_corrupt_file(self, file_store, tmp_path):
        """Test invalid JSON raises CorruptDataError."""
        (tmp_path / "expenses.json").write_text("[{", encoding="utf-8")
        with pytest.raises(CorruptDataError):
            file_store.load("expenses")

    def test_non_utf8_file(self, file_store, tmp_path):
        """Test bytes that are not UTF-8 raise CorruptDataError."""
        (tmp_path / "expenses.json").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(CorruptDataError):
            file_store.load("expenses")

    def test_overwrite_leaves_no_temp_files(self, file_store, tmp_path):
        """Test repeated saves replace the file without leftovers."""
        file_store.save("settings", {"dailyBudget": 30})
        file_store.save("settings", {"dailyBudget": 40})

        assert json.loads((tmp_path / "settings.json").read_text(encoding="utf-8")) == {"dailyBudget": 40}
        assert sorted(p.name for p in tmp_path.iterdir()) == ["settings.json"]

    def test_creates_data_dir(self, tmp_path):
        """Test the data directory is created on first save."""
        store = JsonFileStateStore(StorageSettings(data_dir=tmp_path / "nested", fsync_writes=False))
        store.save("expenses", [])
        assert (tmp_path / "nested" / "expenses.json").exists()

    def test_write_failure_raises_storage_error(self, tmp_path):
        """Test a write that keeps failing surfaces as StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonFileStateStore(StorageSettings(data_dir=blocker, fsync_writes=False, retry_attempts=1))

        with pytest.raises(StorageError):
            store.save("expenses", [])

    def test_save_many_reports_failures(self, tmp_path):
        """Test save_many continues past failures and lists them."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonFileStateStore(StorageSettings(data_dir=blocker, fsync_writes=False, retry_attempts=1))

        assert store.save_many({"expenses": [], "trash": []}) == ["expenses", "trash"]

    def test_unknown_key(self, file_store):
        """Test only the four state keys map to files."""
        with pytest.raises(UnknownKeyError):
            file_store.path_for("other")
