"""Key-value persistence used for state kept on the shopper's device."""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path


class StorageError(Exception):
    """Raised when a persistence read, write or delete fails."""


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value for ``key`` or ``None`` when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``. Removing a missing key is not an error."""


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """Persists each key as a separate ``.json`` file under ``base_path``."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        self._base_path.mkdir(parents=True, exist_ok=True)

    def _file_for(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._base_path / f"{safe_key}.json"

    def file_path_for(self, key: str) -> Path:
        """Public accessor for the file backing ``key``."""

        return self._file_for(key)

    def get(self, key: str) -> str | None:
        file_path = self._file_for(key)
        try:
            return file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not read {key}") from exc

    def set(self, key: str, value: str) -> None:
        file_path = self._file_for(key)
        temp_path = file_path.with_suffix(".tmp")
        try:
            temp_path.write_text(value, encoding="utf-8")
            temp_path.replace(file_path)
        except OSError as exc:
            raise StorageError(f"Could not write {key}") from exc

    def remove(self, key: str) -> None:
        try:
            self._file_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not remove {key}") from exc
