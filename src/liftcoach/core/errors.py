"""Exception hierarchy for the liftcoach engine."""

from __future__ import annotations


class LiftCoachError(Exception):
    """Base exception for all liftcoach errors."""


class NoProgramError(LiftCoachError):
    """The training program has no sessions, so nothing can be scheduled."""

    def __init__(self, message: str = "Cannot schedule: the program has no sessions") -> None:
        super().__init__(message)


class ScheduleConflict(LiftCoachError):
    """An override change touched a date that already has a completed workout."""

    def __init__(self, date: str) -> None:
        super().__init__(f"{date} already has a completed workout and cannot be rescheduled")
        self.date = date


class IncompleteWorkoutError(LiftCoachError):
    """finish() was called while some set still lacks valid reps or weight."""

    def __init__(self, exercise_index: int, exercise_name: str) -> None:
        super().__init__(
            f"Exercise #{exercise_index + 1} ({exercise_name}) has sets without valid values"
        )
        self.exercise_index = exercise_index
        self.exercise_name = exercise_name


class NoLongerValidError(LiftCoachError):
    """A saved workout refers to a session that is no longer in the program."""

    def __init__(self, session_name: str) -> None:
        super().__init__(
            f"Saved workout '{session_name}' is no longer part of the program; it was discarded"
        )
        self.session_name = session_name


class SessionStateError(LiftCoachError):
    """Operation not allowed in the current workout state."""


class InsightError(LiftCoachError):
    """The AI insight collaborator failed or returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DuplicateLogError(LiftCoachError):
    """A finished workout was logged for a date that already has one."""

    def __init__(self, date: str) -> None:
        super().__init__(f"A workout is already logged for {date}")
        self.date = date
