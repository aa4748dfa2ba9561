"""
Key-value persistence adapter.

The engine persists a handful of logical keys (workoutLogs,
activeWorkoutState, scheduleOverrides, lastCoachInsight,
imbalanceAnalysis, profile, program). Each backend maps them to storage:

- JsonFileStore: one ``<key>.json`` file per key in a directory
- MemoryStore:   an in-process dict (tests, embedding)

Writes are whole-value replacements; concurrent writers resolve as
last-write-wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from ..core.errors import LiftCoachError

logger = logging.getLogger(__name__)


class CorruptEntryError(LiftCoachError):
    """A stored value exists but cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Stored value for '{key}' is corrupt: {reason}")
        self.key = key


class KeyValueStore(Protocol):
    """Minimal get/set/remove storage contract."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class JsonFileStore:
    """
    Stores each key as a pretty-printed JSON file.

    Files are written to a temporary sibling and moved into place with
    os.replace, so a crash mid-write never leaves a truncated file.
    """

    def __init__(self, directory: str | Path):
        """
        Initialize the store.

        Args:
            directory: Directory holding the key files (created on first write)
        """
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """Return the file backing a key."""
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """
        Return the decoded value for key, or None if absent.

        Raises:
            CorruptEntryError: If the file exists but is not valid JSON
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptEntryError(key, str(e)) from e

    def set(self, key: str, value: Any) -> None:
        """Atomically replace the value for key."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path_for(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s", self.path_for(key))

    def remove(self, key: str) -> None:
        """Delete the value for key (no-op if absent)."""
        self.path_for(key).unlink(missing_ok=True)
        logger.debug("Removed %s", key)


class MemoryStore:
    """
    Dict-backed store.

    Values are round-tripped through JSON on write and read, so callers
    never share mutable state with the store and non-serializable values
    fail the same way they would on disk.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptEntryError(key, str(e)) from e

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store an undecoded string (used to simulate corruption)."""
        self._data[key] = raw

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
