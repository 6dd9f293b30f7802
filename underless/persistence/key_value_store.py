"""
Key-value storage backends for round persistence.

Both backends store string values under string keys with get/set/delete
semantics. Writes are complete before the call returns, so a later read in
the same session always sees them.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal string key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Value for `key`, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store `value` under `key`."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key` if present."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    JSON-file store with atomic writes.

    All keys live in one JSON object. Each write goes to a temporary file
    that then replaces the target, so a crash never leaves a half-written
    file behind.
    """

    def __init__(self, path: str = "/tmp/underless_uoh_state.json"):
        """
        Initialize file store.

        Args:
            path: Path to the JSON file
        """
        self.path = str(path)
        logger.debug(f"JsonFileKeyValueStore initialized with path: {self.path}")

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[PERSIST] Failed to read {self.path}, treating as empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"[PERSIST] {self.path} does not hold a JSON object, treating as empty")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp = self.path + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"[PERSIST] Failed to write {self.path}: {e}")
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
