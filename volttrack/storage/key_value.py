"""
Key-Value Storage Backends
==========================
Persistence for the serialized record set.

Both backends share one contract:
- load(key) returns the stored value or None
- save(key, value) overwrites the key with the whole value

A backend that holds data it cannot read raises StorageReadError from both
calls rather than reporting the key as absent or writing over it.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class StorageReadError(Exception):
    """Raised when existing stored data cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Unreadable storage file {path}: {reason}")


class KeyValueStorage:
    """Base class for storage backends."""

    def load(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """In-process storage, used by tests and the stateless CLI commands."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStorage(KeyValueStorage):
    """
    JSON file holding a {key: value} object.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-save leaves the previous file intact.
    """

    def __init__(self, path: str):
        """
        Initialize file storage.

        Args:
            path: Location of the JSON file (created on first save)
        """
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        """
        Read the whole file.

        Raises:
            StorageReadError: If the file exists but is not a JSON object
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse storage file - path={self.path}, error={e}")
            raise StorageReadError(str(self.path), str(e)) from e
        if not isinstance(data, dict):
            logger.error(f"Storage file has unexpected shape - path={self.path}, type={type(data).__name__}")
            raise StorageReadError(str(self.path), f"expected a JSON object, got {type(data).__name__}")
        return data

    def load(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Saved storage key - key={key}, path={self.path}")
