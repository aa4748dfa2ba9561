"""
Workout scheduler: calendar date -> planned session or rest day.

Resolution order for a date:
1. A logged workout on that date      -> completed (history always wins)
2. An entry in the override map       -> planned index, or rest for None
3. Weekday not in preferred days      -> rest (unless the user has no logs yet)
4. Otherwise                          -> planned, index = len(logs) % len(sessions)

Weekday indices follow 0 = Sunday .. 6 = Saturday.

All functions are pure. Override maps are never mutated in place; edits
return a new dict so a rejected edit leaves the caller's map untouched.
"""

from datetime import date, timedelta
from typing import Mapping, Sequence

from .errors import NoProgramError, ScheduleConflict
from .models import Profile, Program, ScheduleResult, WorkoutLog

Overrides = Mapping[str, int | None]


def weekday_index(day: date) -> int:
    """Return the weekday with 0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7


def _logs_by_date(logs: Sequence[WorkoutLog]) -> dict[str, WorkoutLog]:
    by_date: dict[str, WorkoutLog] = {}
    for log in logs:
        by_date.setdefault(log.date, log)
    return by_date


def _require_sessions(program: Program) -> None:
    if not program.sessions:
        raise NoProgramError()


def _is_training_day(day: date, preferred_days: Sequence[int], log_count: int) -> bool:
    if log_count == 0 or not preferred_days:
        return True
    return weekday_index(day) in preferred_days


def _resolve(
    day: date,
    program: Program,
    preferred_days: Sequence[int],
    logged: Mapping[str, WorkoutLog],
    log_count: int,
    overrides: Overrides,
) -> ScheduleResult:
    key = day.isoformat()

    log = logged.get(key)
    if log is not None:
        return ScheduleResult(
            date=key,
            kind="completed",
            session=program.find_session(log.session_name),
            rotation_index=program.index_of(log.session_name),
            log=log,
        )

    n = len(program.sessions)

    if key in overrides:
        index = overrides[key]
        if index is None:
            return ScheduleResult(date=key, kind="rest")
        # A program regenerated with fewer sessions wraps stale indices.
        index %= n
        return ScheduleResult(
            date=key, kind="planned", session=program.sessions[index], rotation_index=index
        )

    if not _is_training_day(day, preferred_days, log_count):
        return ScheduleResult(date=key, kind="rest")

    index = log_count % n
    return ScheduleResult(
        date=key, kind="planned", session=program.sessions[index], rotation_index=index
    )


def scheduled_workout(
    day: date,
    program: Program,
    profile: Profile,
    logs: Sequence[WorkoutLog],
    overrides: Overrides | None = None,
) -> ScheduleResult:
    """
    Decide what is due on a date.

    Args:
        day: Calendar date to resolve
        program: Training program (sessions in rotation order)
        profile: User profile (preferred weekdays)
        logs: Full workout history
        overrides: Sparse date -> session index (None = explicit rest)

    Returns:
        ScheduleResult of kind "completed", "planned" or "rest"

    Raises:
        NoProgramError: If the program has no sessions
    """
    _require_sessions(program)
    return _resolve(
        day,
        program,
        profile.preferred_days,
        _logs_by_date(logs),
        len(logs),
        overrides or {},
    )


def effective_session_index(
    day: date,
    program: Program,
    profile: Profile,
    logs: Sequence[WorkoutLog],
    overrides: Overrides | None = None,
) -> int | None:
    """
    Session index that would be trained on a date (None = rest).

    Raises:
        ScheduleConflict: If the date already has a completed workout
        NoProgramError: If the program has no sessions
    """
    result = scheduled_workout(day, program, profile, logs, overrides)
    if result.kind == "completed":
        raise ScheduleConflict(result.date)
    return result.rotation_index if result.kind == "planned" else None


def set_override(
    overrides: Overrides,
    day: date,
    index: int | None,
    program: Program,
    logs: Sequence[WorkoutLog] = (),
) -> dict[str, int | None]:
    """
    Return a copy of overrides with day pinned to a session index (None = rest).

    Raises:
        NoProgramError: If the program has no sessions
        ValueError: If index is outside the program
        ScheduleConflict: If the date already has a completed workout
    """
    _require_sessions(program)
    if index is not None and not 0 <= index < len(program.sessions):
        raise ValueError(
            f"Session index {index} out of range (program has {len(program.sessions)} sessions)"
        )
    key = day.isoformat()
    if key in _logs_by_date(logs):
        raise ScheduleConflict(key)
    updated = dict(overrides)
    updated[key] = index
    return updated


def clear_override(overrides: Overrides, day: date) -> dict[str, int | None]:
    """Return a copy of overrides without an entry for day."""
    updated = dict(overrides)
    updated.pop(day.isoformat(), None)
    return updated


def swap_dates(
    first: date,
    second: date,
    program: Program,
    profile: Profile,
    logs: Sequence[WorkoutLog],
    overrides: Overrides | None = None,
) -> dict[str, int | None]:
    """
    Exchange the effective sessions of two dates via the override map.

    Each date receives the other's effective index (a rest day swaps as
    None). Swapping the same pair twice restores the original assignment.

    Returns:
        New override map

    Raises:
        ScheduleConflict: If either date has a completed workout
        NoProgramError: If the program has no sessions
    """
    overrides = overrides or {}
    first_index = effective_session_index(first, program, profile, logs, overrides)
    second_index = effective_session_index(second, program, profile, logs, overrides)
    updated = dict(overrides)
    updated[first.isoformat()] = second_index
    updated[second.isoformat()] = first_index
    return updated


def next_scheduled_day(today: date, preferred_days: Sequence[int]) -> tuple[date, int] | None:
    """
    Next preferred weekday on or after today.

    Returns:
        (date, days_until) or None when no preferred days are configured
    """
    if not preferred_days:
        return None
    for offset in range(7):
        day = today + timedelta(days=offset)
        if weekday_index(day) in preferred_days:
            return day, offset
    return None


def upcoming_schedule(
    start: date,
    days: int,
    program: Program,
    profile: Profile,
    logs: Sequence[WorkoutLog],
    overrides: Overrides | None = None,
) -> list[ScheduleResult]:
    """
    Project the schedule for the next days, assuming each planned day is trained.

    The rotation advances once per projected planned day, exactly as it
    would if the user logged every workout.

    Raises:
        NoProgramError: If the program has no sessions
    """
    _require_sessions(program)
    logged = _logs_by_date(logs)
    overrides = overrides or {}
    count = len(logs)
    projection: list[ScheduleResult] = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        result = _resolve(day, program, profile.preferred_days, logged, count, overrides)
        projection.append(result)
        if result.kind == "planned":
            count += 1
    return projection
