"""
JSON serialization for liftcoach data models.

Handles conversion between dataclasses and JSON-compatible dicts, plus
loading profile/program definitions from YAML or JSON files.
Every ``dict_to_*`` function raises ValidationError on malformed input.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, TypeVar

import yaml

from ..core.errors import LiftCoachError
from ..core.models import (
    ActiveWorkoutState,
    CompletedExercise,
    CompletedSet,
    Exercise,
    ImbalanceReport,
    PainReport,
    Profile,
    Program,
    ReadinessData,
    Session,
    WorkoutFeedback,
    WorkoutLog,
)

T = TypeVar("T")


class ValidationError(LiftCoachError):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate date string is ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        The same YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def _build(kind: str, fn: Callable[[], T]) -> T:
    """Run a constructor, converting data errors to ValidationError."""
    try:
        return fn()
    except ValidationError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid {kind}: {e}") from e


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _opt_int(value: Any) -> int | None:
    return None if value is None else int(value)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a naive local ISO timestamp.

    All stored times are local wall-clock times; a value carrying a UTC
    offset cannot be compared with them and is rejected.

    Raises:
        ValidationError: If value is not an ISO timestamp or has an offset
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is not None:
        raise ValidationError(f"Timestamp {value!r} must be local time without a UTC offset")
    return parsed


# =============================================================================
# Templates
# =============================================================================


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """Convert Exercise to JSON-compatible dict."""
    data: dict[str, Any] = {
        "name": exercise.name,
        "movement_type": exercise.movement_type,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "weight_kg": exercise.weight_kg,
        "rest_seconds": exercise.rest_seconds,
        "technique": exercise.technique,
        "is_warmup": exercise.is_warmup,
    }
    if exercise.is_adjusted:
        data["prescribed_sets"] = exercise.prescribed_sets
        data["prescribed_weight_kg"] = exercise.prescribed_weight_kg
    return data


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """Convert dict to Exercise. A missing movement_type stays untagged (None)."""
    return _build(
        "exercise",
        lambda: Exercise(
            name=str(data["name"]),
            sets=int(data["sets"]),
            reps=str(data["reps"]),
            weight_kg=_opt_float(data.get("weight_kg")),
            movement_type=data.get("movement_type"),
            rest_seconds=int(data.get("rest_seconds", 90)),
            technique=data.get("technique"),
            is_warmup=bool(data.get("is_warmup", False)),
            prescribed_sets=_opt_int(data.get("prescribed_sets")),
            prescribed_weight_kg=_opt_float(data.get("prescribed_weight_kg")),
        ),
    )


def session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "name": session.name,
        "exercises": [exercise_to_dict(e) for e in session.exercises],
    }


def dict_to_session(data: dict[str, Any]) -> Session:
    return _build(
        "session",
        lambda: Session(
            name=str(data["name"]),
            exercises=[dict_to_exercise(e) for e in data["exercises"]],
        ),
    )


def program_to_dict(program: Program) -> dict[str, Any]:
    return {
        "name": program.name,
        "sessions": [session_to_dict(s) for s in program.sessions],
    }


def dict_to_program(data: dict[str, Any]) -> Program:
    """Convert dict to Program; an empty session list is allowed."""
    return _build(
        "program",
        lambda: Program(
            name=str(data.get("name", "Program")),
            sessions=[dict_to_session(s) for s in data.get("sessions") or []],
        ),
    )


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "gender": profile.gender,
        "age": profile.age,
        "weight_kg": profile.weight_kg,
        "height_cm": profile.height_cm,
        "experience": profile.experience,
        "goal": profile.goal,
        "preferred_days": list(profile.preferred_days),
        "sessions_per_week": profile.sessions_per_week,
        "session_minutes": profile.session_minutes,
        "location": profile.location,
        "injuries": list(profile.injuries),
    }


def dict_to_profile(data: dict[str, Any]) -> Profile:
    return _build(
        "profile",
        lambda: Profile(
            gender=data["gender"],
            age=int(data["age"]),
            weight_kg=float(data["weight_kg"]),
            height_cm=int(data["height_cm"]),
            experience=data.get("experience", "beginner"),
            goal=str(data.get("goal", "strength")),
            preferred_days=[int(d) for d in data.get("preferred_days", [1, 3, 5])],
            sessions_per_week=int(data.get("sessions_per_week", 3)),
            session_minutes=int(data.get("session_minutes", 60)),
            location=str(data.get("location", "gym")),
            injuries=[str(i) for i in data.get("injuries", [])],
        ),
    )


# =============================================================================
# Workout data
# =============================================================================


def readiness_to_dict(readiness: ReadinessData) -> dict[str, Any]:
    return {
        "sleep": readiness.sleep,
        "nutrition": readiness.nutrition,
        "stress": readiness.stress,
        "soreness": readiness.soreness,
        "status": readiness.status,
    }


def dict_to_readiness(data: dict[str, Any]) -> ReadinessData:
    return _build(
        "readiness",
        lambda: ReadinessData(
            sleep=int(data["sleep"]),
            nutrition=int(data["nutrition"]),
            stress=int(data["stress"]),
            soreness=int(data["soreness"]),
            status=data["status"],
        ),
    )


def completed_set_to_dict(s: CompletedSet) -> dict[str, Any]:
    return {
        "reps": s.reps,
        "weight_kg": s.weight_kg,
        "rir": s.rir,
        "is_completed": s.is_completed,
        "target_reps": s.target_reps,
        "target_weight_kg": s.target_weight_kg,
    }


def dict_to_completed_set(data: dict[str, Any]) -> CompletedSet:
    return _build(
        "set",
        lambda: CompletedSet(
            reps=_opt_int(data.get("reps")),
            weight_kg=_opt_float(data.get("weight_kg")),
            rir=_opt_int(data.get("rir")),
            is_completed=bool(data.get("is_completed", False)),
            target_reps=str(data.get("target_reps", "")),
            target_weight_kg=_opt_float(data.get("target_weight_kg")),
        ),
    )


def completed_exercise_to_dict(ex: CompletedExercise) -> dict[str, Any]:
    data = exercise_to_dict(ex.exercise)
    data["completed_sets"] = [completed_set_to_dict(s) for s in ex.sets]
    return data


def dict_to_completed_exercise(data: dict[str, Any]) -> CompletedExercise:
    return _build(
        "completed exercise",
        lambda: CompletedExercise(
            exercise=dict_to_exercise(data),
            sets=[dict_to_completed_set(s) for s in data.get("completed_sets", [])],
        ),
    )


def pain_to_dict(pain: PainReport) -> dict[str, Any]:
    return {"has_pain": pain.has_pain, "location": pain.location, "details": pain.details}


def dict_to_pain(data: dict[str, Any]) -> PainReport:
    return _build(
        "pain report",
        lambda: PainReport(
            has_pain=bool(data.get("has_pain", False)),
            location=data.get("location"),
            details=data.get("details"),
        ),
    )


def feedback_to_dict(feedback: WorkoutFeedback) -> dict[str, Any]:
    return {
        "completion": feedback.completion,
        "pain": pain_to_dict(feedback.pain),
        "pump_quality": feedback.pump_quality,
    }


def dict_to_feedback(data: dict[str, Any]) -> WorkoutFeedback:
    return _build(
        "feedback",
        lambda: WorkoutFeedback(
            completion=data.get("completion", "yes"),
            pain=dict_to_pain(data.get("pain") or {}),
            pump_quality=_opt_int(data.get("pump_quality")),
        ),
    )


def workout_log_to_dict(log: WorkoutLog) -> dict[str, Any]:
    """
    Convert WorkoutLog to JSON-compatible dict.

    Args:
        log: WorkoutLog to convert

    Returns:
        Dict representation
    """
    return {
        "session_name": log.session_name,
        "date": log.date,
        "start_time": log.start_time.isoformat(),
        "duration_seconds": log.duration_seconds,
        "readiness": readiness_to_dict(log.readiness) if log.readiness else None,
        "feedback": feedback_to_dict(log.feedback) if log.feedback else None,
        "exercises": [completed_exercise_to_dict(e) for e in log.exercises],
    }


def dict_to_workout_log(data: dict[str, Any]) -> WorkoutLog:
    """
    Convert dict to WorkoutLog.

    Args:
        data: Dict with log data

    Returns:
        WorkoutLog instance

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Invalid workout log: expected object, got {type(data).__name__}")
    validate_date(data.get("date", ""))
    return _build(
        "workout log",
        lambda: WorkoutLog(
            session_name=str(data["session_name"]),
            date=data["date"],
            start_time=parse_timestamp(data["start_time"]),
            duration_seconds=int(data.get("duration_seconds", 0)),
            readiness=dict_to_readiness(data["readiness"]) if data.get("readiness") else None,
            feedback=dict_to_feedback(data["feedback"]) if data.get("feedback") else None,
            exercises=[dict_to_completed_exercise(e) for e in data.get("exercises", [])],
        ),
    )


def active_state_to_dict(state: ActiveWorkoutState) -> dict[str, Any]:
    return {
        "session_name": state.session_name,
        "start_time": state.start_time.isoformat(),
        "last_activity": state.last_activity.isoformat(),
        "readiness": readiness_to_dict(state.readiness) if state.readiness else None,
        "pain": pain_to_dict(state.pain) if state.pain else None,
        "exercises": [completed_exercise_to_dict(e) for e in state.exercises],
    }


def dict_to_active_state(data: dict[str, Any]) -> ActiveWorkoutState:
    return _build(
        "active workout",
        lambda: ActiveWorkoutState(
            session_name=str(data["session_name"]),
            exercises=[dict_to_completed_exercise(e) for e in data["exercises"]],
            start_time=parse_timestamp(data["start_time"]),
            last_activity=parse_timestamp(data["last_activity"]),
            readiness=dict_to_readiness(data["readiness"]) if data.get("readiness") else None,
            pain=dict_to_pain(data["pain"]) if data.get("pain") else None,
        ),
    )


def validate_overrides(data: Any) -> dict[str, int | None]:
    """
    Validate a persisted override map.

    Raises:
        ValidationError: If it is not a date -> int-or-null mapping
    """
    if not isinstance(data, dict):
        raise ValidationError("scheduleOverrides must be an object")
    result: dict[str, int | None] = {}
    for key, value in data.items():
        validate_date(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise ValidationError(f"Override for {key} must be a session index or null, got {value!r}")
        result[key] = value
    return result


def imbalance_to_dict(report: ImbalanceReport) -> dict[str, Any]:
    return {
        "category": report.category,
        "severity": report.severity,
        "ratio": report.ratio,
        "description": report.description,
        "recommendation": report.recommendation,
        "exercises": list(report.exercises),
    }


def dict_to_imbalance(data: dict[str, Any]) -> ImbalanceReport:
    return _build(
        "imbalance report",
        lambda: ImbalanceReport(
            category=str(data["category"]),
            severity=data["severity"],
            ratio=float(data["ratio"]),
            description=str(data["description"]),
            recommendation=str(data["recommendation"]),
            exercises=[str(e) for e in data.get("exercises", [])],
        ),
    )


# =============================================================================
# Definition files
# =============================================================================


def load_definition_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML or JSON definition file (JSON is valid YAML).

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain a mapping at the top level")
    return data
