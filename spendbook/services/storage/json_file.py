"""
JSON File Storage Implementation

DESIGN DECISION: Each state key lives in its own <key>.json file under
a data directory. Small files keep a failed write contained to one
key.

Writes go to a temporary file in the same directory which then
replaces the target, so a crash never leaves a half-written file.
Transient OS errors are retried with exponential backoff.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spendbook.config import StorageSettings, get_settings
from spendbook.services.storage.interface import (
    CorruptDataError,
    StateStoreInterface,
    StorageError,
)


logger = structlog.get_logger("spendbook.storage")


class JsonFileStateStore(StateStoreInterface):
    """Stores each state key as a UTF-8 JSON file."""

    def __init__(self, settings: Optional[StorageSettings] = None):
        self._settings = settings or get_settings().storage
        self._data_dir = Path(self._settings.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        self.check_key(key)
        return self._data_dir / f"{key}.json"

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    def load(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            data = b""
            for attempt in self._retrying():
                with attempt:
                    data = path.read_bytes()
        except (OSError, RetryError) as e:
            logger.error("state_load_failed", key=key, path=str(path), error=str(e))
            raise StorageError(f"Could not read {path}: {e}") from e

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error("state_corrupt", key=key, path=str(path), error=str(e))
            raise CorruptDataError(f"{path} is not UTF-8 text: {e}") from e

        if not text or not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("state_corrupt", key=key, path=str(path), error=str(e))
            raise CorruptDataError(f"{path} is not valid JSON: {e}") from e

    def save(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        content = json.dumps(value, ensure_ascii=False, indent=2)

        try:
            for attempt in self._retrying():
                with attempt:
                    self._atomic_write(path, content)
        except (OSError, RetryError) as e:
            logger.error("state_save_failed", key=key, path=str(path), error=str(e))
            raise StorageError(f"Could not write {path}: {e}") from e

        logger.debug("state_saved", key=key, path=str(path), size=len(content))

    def _atomic_write(self, path: Path, content: str) -> None:
        """Write to a sibling temp file, then replace the target."""
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=path.name + "-",
                suffix=".tmp",
                dir=path.parent,
                delete=False,
            ) as tf:
                temp_name = tf.name
                tf.write(content)
                tf.flush()
                if self._settings.fsync_writes:
                    os.fsync(tf.fileno())
            os.replace(temp_name, path)
            temp_name = None
        finally:
            if temp_name and os.path.exists(temp_name):
                os.unlink(temp_name)
