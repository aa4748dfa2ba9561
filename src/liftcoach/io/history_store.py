"""
Typed access to liftcoach's persisted keys.

Wraps a KeyValueStore with the engine's logical keys. The workout log is
the source of truth and is append-only; a corrupt log is a hard error.
Derived or transient keys (overrides, active workout, caches) are
treated as a miss when corrupt: the key is cleared and a warning logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from ..core.errors import DuplicateLogError
from ..core.models import ActiveWorkoutState, Profile, Program, WorkoutLog
from .kv_store import CorruptEntryError, JsonFileStore, KeyValueStore
from .serializers import (
    ValidationError,
    active_state_to_dict,
    dict_to_active_state,
    dict_to_profile,
    dict_to_program,
    dict_to_workout_log,
    profile_to_dict,
    program_to_dict,
    validate_overrides,
    workout_log_to_dict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILE_KEY = "profile"
PROGRAM_KEY = "program"
LOGS_KEY = "workoutLogs"
OVERRIDES_KEY = "scheduleOverrides"
ACTIVE_STATE_KEY = "activeWorkoutState"
INSIGHT_KEY = "lastCoachInsight"
IMBALANCE_KEY = "imbalanceAnalysis"


class HistoryStore:
    """
    Persistence facade used by the CLI and the session state machine.

    Args:
        store: Backing key-value store
    """

    def __init__(self, store: KeyValueStore):
        self.kv = store

    @classmethod
    def at(cls, directory: str | Path) -> "HistoryStore":
        """Store backed by JSON files in directory."""
        return cls(JsonFileStore(directory))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def read_or_clear(self, key: str, parse: Callable[[Any], T]) -> T | None:
        """
        Read and parse a recomputable key, dropping it if corrupt.

        Returns:
            Parsed value, or None when absent or corrupt
        """
        try:
            raw = self.kv.get(key)
            if raw is None:
                return None
            return parse(raw)
        except (CorruptEntryError, ValidationError) as e:
            logger.warning("Clearing corrupt %s: %s", key, e)
            self.kv.remove(key)
            return None

    # ------------------------------------------------------------------
    # Profile and program
    # ------------------------------------------------------------------

    def has_profile(self) -> bool:
        return self.load_profile() is not None

    def load_profile(self) -> Profile | None:
        """
        Load the user profile.

        Returns:
            Profile if stored and valid, None otherwise
        """
        try:
            raw = self.kv.get(PROFILE_KEY)
            return dict_to_profile(raw) if raw is not None else None
        except (CorruptEntryError, ValidationError) as e:
            logger.warning("Stored profile is invalid: %s", e)
            return None

    def save_profile(self, profile: Profile) -> None:
        self.kv.set(PROFILE_KEY, profile_to_dict(profile))

    def load_program(self) -> Program | None:
        """Load the training program; None if missing or invalid."""
        try:
            raw = self.kv.get(PROGRAM_KEY)
            return dict_to_program(raw) if raw is not None else None
        except (CorruptEntryError, ValidationError) as e:
            logger.warning("Stored program is invalid: %s", e)
            return None

    def save_program(self, program: Program) -> None:
        self.kv.set(PROGRAM_KEY, program_to_dict(program))

    # ------------------------------------------------------------------
    # Workout logs (append-only)
    # ------------------------------------------------------------------

    def load_logs(self) -> list[WorkoutLog]:
        """
        Load the full workout history.

        Returns:
            Logs sorted by date (stable for same-day entries)

        Raises:
            ValidationError: If the stored history is corrupt
        """
        try:
            raw = self.kv.get(LOGS_KEY)
        except CorruptEntryError as e:
            raise ValidationError(str(e)) from e
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValidationError(f"{LOGS_KEY} must be a list")
        logs = [dict_to_workout_log(item) for item in raw]
        return sorted(logs, key=lambda log: log.date)

    def log_count(self) -> int:
        return len(self.load_logs())

    def append_log(self, log: WorkoutLog) -> None:
        """
        Append one finished workout to history.

        Raises:
            DuplicateLogError: If history already has a workout on log.date
        """
        logs = self.load_logs()
        if any(existing.date == log.date for existing in logs):
            raise DuplicateLogError(log.date)
        logs.append(log)
        self._write_logs(logs)
        logger.info("Appended workout %s on %s (%d total)", log.session_name, log.date, len(logs))

    def import_logs(self, incoming: Iterable[WorkoutLog]) -> int:
        """
        Merge logs from another source; dates already in history are skipped.

        Returns:
            Number of logs added
        """
        logs = self.load_logs()
        known = {log.date for log in logs}
        added = 0
        for log in incoming:
            if log.date in known:
                continue
            logs.append(log)
            known.add(log.date)
            added += 1
        if added:
            self._write_logs(logs)
        logger.info("Imported %d workout logs", added)
        return added

    def _write_logs(self, logs: list[WorkoutLog]) -> None:
        ordered = sorted(logs, key=lambda log: log.date)
        self.kv.set(LOGS_KEY, [workout_log_to_dict(log) for log in ordered])

    # ------------------------------------------------------------------
    # Schedule overrides
    # ------------------------------------------------------------------

    def load_overrides(self) -> dict[str, int | None]:
        return self.read_or_clear(OVERRIDES_KEY, validate_overrides) or {}

    def save_overrides(self, overrides: dict[str, int | None]) -> None:
        self.kv.set(OVERRIDES_KEY, dict(sorted(overrides.items())))

    # ------------------------------------------------------------------
    # Active workout
    # ------------------------------------------------------------------

    def load_active_state(self) -> ActiveWorkoutState | None:
        return self.read_or_clear(ACTIVE_STATE_KEY, dict_to_active_state)

    def save_active_state(self, state: ActiveWorkoutState) -> None:
        self.kv.set(ACTIVE_STATE_KEY, active_state_to_dict(state))

    def clear_active_state(self) -> None:
        self.kv.remove(ACTIVE_STATE_KEY)
