"""
Group-scoped key/value record shared between the extension and the host.

Values are stored as one JSON object per group with atomic writes, a
backup of the previous state, and corruption recovery on read.

Concurrency contract: the extension is the only writer of the handoff key
and the host reads it only after being activated, so the activation signal
orders every write before every read. No inter-process lock is taken.
"""

import contextlib
import json
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any

from share_handoff.paths import PREFERENCES_DIR
from share_handoff.paths import ensure_container

logger = logging.getLogger(__name__)


class SharedDefaults:
    """
    Key/value store visible to every process in a group.

    Contract:
    - Inputs: key (str), JSON-serializable values
    - Outputs: stored values, or the caller's default when missing
    - Side Effects: writes <container>/Preferences/<group>.json (+ .backup)
    - Errors: ValueError for empty keys, OSError when a write fails
    """

    def __init__(self, group_identifier: str, storage_root: Path | None = None):
        """Initialize the store for a group.

        Args:
            group_identifier: Group identifier shared with the host process
            storage_root: Directory holding group containers (for testing)
        """
        self.group_identifier = group_identifier
        container = ensure_container(group_identifier, storage_root)
        self.preferences_dir = container / PREFERENCES_DIR
        self.preferences_dir.mkdir(parents=True, exist_ok=True)
        self.record_file = self.preferences_dir / f"{group_identifier}.json"
        self.backup_file = self.preferences_dir / f"{group_identifier}.json.backup"
        # Serializes read-modify-write cycles within this process
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value, re-reading the file so writes from other processes are seen."""
        return self._load().get(key, default)

    def get_list(self, key: str) -> list[str]:
        """Read a list of strings, returning [] when missing or of the wrong shape."""
        value = self.get(key)
        if not isinstance(value, list):
            if value is not None:
                logger.warning(f"Value for '{key}' is not a list, ignoring it")
            return []
        return [str(item) for item in value]

    def keys(self) -> list[str]:
        return sorted(self._load())

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous value for the key.

        Raises:
            ValueError: If key is empty or value is not JSON-serializable
            OSError: If the record cannot be written
        """
        if not key or not key.strip():
            raise ValueError("key cannot be empty")
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Value for '{key}' is not JSON-serializable: {e}") from e

        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)
        logger.debug(f"Shared record '{key}' updated in group {self.group_identifier}")

    def remove(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
        return True

    def _save(self, data: dict[str, Any]) -> None:
        """Write the whole mapping atomically, keeping a backup of the old file."""
        # A corrupt main file must not replace a good backup
        if self.record_file.exists() and self._is_readable(self.record_file):
            try:
                shutil.copy2(self.record_file, self.backup_file)
            except OSError as e:
                logger.warning(f"Failed to create backup: {e}")

        # Write to temp file first (atomic write pattern)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=self.preferences_dir, prefix="defaults_", suffix=".tmp", delete=False, encoding="utf-8"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                json.dump(data, tmp_file, indent=2, ensure_ascii=False)
                tmp_file.flush()

                # Atomic rename
                temp_path.replace(self.record_file)

            except Exception as e:
                with contextlib.suppress(Exception):
                    temp_path.unlink()
                raise OSError(f"Failed to save shared record: {e}") from e

    def _load(self) -> dict[str, Any]:
        """Load the mapping with corruption recovery."""
        if self.record_file.exists():
            try:
                return self._read(self.record_file)
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load shared record, trying backup: {e}")

        if self.backup_file.exists():
            try:
                data = self._read(self.backup_file)
                logger.info("Loaded shared record from backup")
                return data
            except (OSError, ValueError, TypeError) as e:
                logger.error(f"Backup also corrupted: {e}")

        return {}

    @classmethod
    def _is_readable(cls, path: Path) -> bool:
        try:
            cls._read(path)
        except (OSError, ValueError, TypeError):
            return False
        return True

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise TypeError(f"{path.name} does not contain a JSON object")
        return data
