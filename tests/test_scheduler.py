"""
Unit tests for the rotation scheduler.

Calendar used throughout (2026):
    Sun 03-01, Mon 03-02, Tue 03-03, Wed 03-04, Thu 03-05, Fri 03-06,
    Sat 03-07, Sun 03-08, Mon 03-09

Preferred days [1, 3, 5] are Mon / Wed / Fri (0 = Sunday).
"""

from datetime import date, datetime

import pytest

from liftcoach.core.errors import NoProgramError, ScheduleConflict
from liftcoach.core.models import (
    CompletedExercise,
    CompletedSet,
    Exercise,
    Profile,
    Program,
    Session,
    WorkoutLog,
)
from liftcoach.core.scheduler import (
    clear_override,
    effective_session_index,
    next_scheduled_day,
    scheduled_workout,
    set_override,
    swap_dates,
    upcoming_schedule,
    weekday_index,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

MON = date(2026, 3, 2)
TUE = date(2026, 3, 3)
WED = date(2026, 3, 4)
THU = date(2026, 3, 5)
FRI = date(2026, 3, 6)


def _session(name: str) -> Session:
    return Session(name=name, exercises=[Exercise(name=f"{name} Squat", sets=3, reps="5", weight_kg=100.0)])


def _program(*names: str) -> Program:
    return Program(sessions=[_session(n) for n in names])


def _profile(days: list[int] | None = None) -> Profile:
    return Profile(
        gender="male",
        age=30,
        weight_kg=80.0,
        height_cm=180,
        preferred_days=[1, 3, 5] if days is None else days,
    )


def _log(day: date, session_name: str) -> WorkoutLog:
    ex = Exercise(name=f"{session_name} Squat", sets=1, reps="5", weight_kg=100.0)
    return WorkoutLog(
        session_name=session_name,
        date=day.isoformat(),
        start_time=datetime(day.year, day.month, day.day, 18, 0),
        duration_seconds=3600,
        exercises=[CompletedExercise(ex, [CompletedSet(reps=5, weight_kg=100.0, is_completed=True)])],
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestWeekdays:
    def test_sunday_is_zero(self):
        assert weekday_index(date(2026, 3, 1)) == 0
        assert weekday_index(MON) == 1
        assert weekday_index(date(2026, 3, 7)) == 6

    def test_next_scheduled_day_includes_today(self):
        assert next_scheduled_day(MON, [1, 3, 5]) == (MON, 0)

    def test_next_scheduled_day_skips_to_wednesday(self):
        assert next_scheduled_day(TUE, [1, 3, 5]) == (WED, 1)

    def test_next_scheduled_day_without_preferences(self):
        assert next_scheduled_day(TUE, []) is None


class TestRotation:
    """Index = len(logs) % len(sessions) on preferred days."""

    def test_one_log_rotates_to_second_session(self):
        program = _program("A", "B")
        logs = [_log(MON, "A")]

        result = scheduled_workout(WED, program, _profile(), logs)

        assert result.kind == "planned"
        assert result.session.name == "B"
        assert result.rotation_index == 1

    def test_rotation_wraps(self):
        program = _program("A", "B")
        logs = [_log(MON, "A"), _log(WED, "B")]

        # 2 logs % 2 sessions = 0
        assert scheduled_workout(FRI, program, _profile(), logs).session.name == "A"

    def test_logged_date_is_completed(self):
        program = _program("A", "B")
        logs = [_log(MON, "A")]

        result = scheduled_workout(MON, program, _profile(), logs)

        assert result.kind == "completed"
        assert result.log is logs[0]
        assert result.session.name == "A"

    def test_non_preferred_day_is_rest(self):
        program = _program("A", "B")
        result = scheduled_workout(TUE, program, _profile(), [_log(MON, "A")])
        assert result.kind == "rest"
        assert result.session is None

    def test_cold_start_any_day_is_training_day(self):
        result = scheduled_workout(TUE, _program("A", "B"), _profile(), [])
        assert result.kind == "planned"
        assert result.session.name == "A"

    def test_no_preferred_days_trains_every_day(self):
        result = scheduled_workout(TUE, _program("A", "B"), _profile([]), [_log(MON, "A")])
        assert result.kind == "planned"
        assert result.session.name == "B"

    def test_completed_log_for_removed_session(self):
        logs = [_log(MON, "Old")]
        result = scheduled_workout(MON, _program("A", "B"), _profile(), logs)
        assert result.kind == "completed"
        assert result.session is None
        assert result.rotation_index is None

    def test_empty_program_raises(self):
        with pytest.raises(NoProgramError):
            scheduled_workout(MON, Program(), _profile(), [])

    def test_effective_index_raises_for_completed_date(self):
        with pytest.raises(ScheduleConflict):
            effective_session_index(MON, _program("A", "B"), _profile(), [_log(MON, "A")])


class TestOverrides:
    def test_override_pins_session_on_rest_day(self):
        program = _program("A", "B")
        overrides = set_override({}, TUE, 1, program)

        result = scheduled_workout(TUE, program, _profile(), [_log(MON, "A")], overrides)

        assert result.kind == "planned"
        assert result.session.name == "B"

    def test_none_override_is_rest(self):
        program = _program("A", "B")
        overrides = set_override({}, WED, None, program)
        result = scheduled_workout(WED, program, _profile(), [_log(MON, "A")], overrides)
        assert result.kind == "rest"

    def test_set_override_returns_copy(self):
        original: dict[str, int | None] = {}
        updated = set_override(original, WED, 0, _program("A", "B"))
        assert original == {}
        assert updated == {"2026-03-04": 0}

    def test_index_out_of_range(self):
        with pytest.raises(ValueError):
            set_override({}, WED, 2, _program("A", "B"))

    def test_cannot_override_completed_date(self):
        with pytest.raises(ScheduleConflict):
            set_override({}, MON, 1, _program("A", "B"), [_log(MON, "A")])

    def test_history_wins_over_override(self):
        program = _program("A", "B")
        overrides = {"2026-03-02": 1}
        result = scheduled_workout(MON, program, _profile(), [_log(MON, "A")], overrides)
        assert result.kind == "completed"

    def test_stale_index_wraps(self):
        # Index 3 on a two-session program -> 3 % 2 = 1
        result = scheduled_workout(WED, _program("A", "B"), _profile(), [], {"2026-03-04": 3})
        assert result.session.name == "B"

    def test_clear_override(self):
        overrides = {"2026-03-04": 0, "2026-03-06": None}
        assert clear_override(overrides, WED) == {"2026-03-06": None}
        assert clear_override(overrides, THU) == overrides


class TestSwap:
    def test_swap_planned_with_rest(self):
        program = _program("A", "B")
        logs = [_log(MON, "A")]

        # Before: Wed = B (index 1), Thu = rest
        updated = swap_dates(WED, THU, program, _profile(), logs, {})

        assert updated == {"2026-03-04": None, "2026-03-05": 1}
        assert scheduled_workout(WED, program, _profile(), logs, updated).kind == "rest"
        assert scheduled_workout(THU, program, _profile(), logs, updated).session.name == "B"

    def test_swap_twice_restores_assignment(self):
        program = _program("A", "B")
        logs = [_log(MON, "A")]
        profile = _profile()

        once = swap_dates(WED, THU, program, profile, logs, {})
        twice = swap_dates(WED, THU, program, profile, logs, once)

        for day in (WED, THU):
            before = scheduled_workout(day, program, profile, logs, {})
            after = scheduled_workout(day, program, profile, logs, twice)
            assert (before.kind, before.rotation_index) == (after.kind, after.rotation_index)

    def test_swap_with_completed_date_is_rejected(self):
        overrides = {"2026-03-06": 0}
        with pytest.raises(ScheduleConflict) as exc:
            swap_dates(MON, FRI, _program("A", "B"), _profile(), [_log(MON, "A")], overrides)
        assert exc.value.date == "2026-03-02"
        assert overrides == {"2026-03-06": 0}


class TestUpcoming:
    def test_week_projection_advances_rotation(self):
        program = _program("A", "B")
        results = upcoming_schedule(TUE, 7, program, _profile(), [_log(MON, "A")])

        summary = [(r.date, r.kind, r.session.name if r.session else None) for r in results]
        assert summary == [
            ("2026-03-03", "rest", None),
            ("2026-03-04", "planned", "B"),
            ("2026-03-05", "rest", None),
            ("2026-03-06", "planned", "A"),
            ("2026-03-07", "rest", None),
            ("2026-03-08", "rest", None),
            ("2026-03-09", "planned", "B"),
        ]

    def test_projection_includes_completed_days(self):
        results = upcoming_schedule(MON, 2, _program("A", "B"), _profile(), [_log(MON, "A")])
        assert [r.kind for r in results] == ["completed", "rest"]
