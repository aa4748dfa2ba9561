"""
Pure metric computation functions.

Volume, e1RM and trend helpers over WorkoutLog history. Warm-ups never
count. All functions are pure and deterministic.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Sequence

from .exercises.classifier import DEFAULT_CLASSIFIER, MovementClassifier
from .models import CompletedExercise, CompletedSet, PersonalRecord, WorkoutLog


def epley_e1rm(weight_kg: float, reps: int) -> float:
    """
    Estimate 1RM using the Epley formula.

    1RM = W x (1 + R/30), and exactly W for a single.

    Args:
        weight_kg: Load lifted
        reps: Reps completed

    Returns:
        Estimated 1RM in kg (0 for an empty or unloaded set)
    """
    if reps <= 0 or weight_kg <= 0:
        return 0.0
    if reps == 1:
        return float(weight_kg)
    return weight_kg * (1 + reps / 30)


def set_e1rm(s: CompletedSet) -> float:
    """e1RM of one set (0 if reps or weight are missing)."""
    if s.reps is None or s.weight_kg is None:
        return 0.0
    return epley_e1rm(s.weight_kg, s.reps)


def exercise_best_set(ex: CompletedExercise) -> CompletedSet | None:
    """Set with the highest e1RM, or None if no set is loaded."""
    best: CompletedSet | None = None
    best_e1rm = 0.0
    for s in ex.sets:
        e = set_e1rm(s)
        if e > best_e1rm:
            best, best_e1rm = s, e
    return best


def exercise_e1rm(ex: CompletedExercise) -> float:
    """Maximum set e1RM of one exercise in one session."""
    best = exercise_best_set(ex)
    return set_e1rm(best) if best is not None else 0.0


def set_volume(s: CompletedSet) -> float:
    """weight x reps, 0 when either is missing."""
    if not s.reps or not s.weight_kg:
        return 0.0
    return s.weight_kg * s.reps


def exercise_volume(
    ex: CompletedExercise,
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
) -> float:
    """
    Load volume of one exercise.

    Bodyweight, cardio and isometric work contributes only the sets that
    carry external weight.
    """
    if ex.is_warmup:
        return 0.0
    loaded_type = classifier.movement_type(ex.exercise) == "strength"
    total = 0.0
    for s in ex.sets:
        if not loaded_type and not s.weight_kg:
            continue
        total += set_volume(s)
    return total


def workout_volume(log: WorkoutLog, classifier: MovementClassifier = DEFAULT_CLASSIFIER) -> float:
    """Total load volume (kg x reps) of one workout."""
    return sum(exercise_volume(ex, classifier) for ex in log.exercises)


def total_volume(logs: Sequence[WorkoutLog], classifier: MovementClassifier = DEFAULT_CLASSIFIER) -> float:
    """Total load volume across the history."""
    return sum(workout_volume(log, classifier) for log in logs)


def _parse(d: str) -> date:
    return date.fromisoformat(d)


def week_start(d: date) -> date:
    """Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def weekly_volume(
    logs: Sequence[WorkoutLog],
    weeks: int = 8,
    today: date | None = None,
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
) -> list[tuple[date, float]]:
    """
    Load volume per ISO week, oldest first.

    Args:
        logs: Workout history
        weeks: Number of weeks to report, ending with the week of today
        today: Reference date (default: latest log date, else date.today())

    Returns:
        List of (week Monday, volume), including empty weeks as 0
    """
    if today is None:
        today = max((_parse(log.date) for log in logs), default=date.today())
    current = week_start(today)
    buckets: dict[date, float] = defaultdict(float)
    for log in logs:
        buckets[week_start(_parse(log.date))] += workout_volume(log, classifier)
    return [
        (current - timedelta(weeks=i), buckets.get(current - timedelta(weeks=i), 0.0))
        for i in range(weeks - 1, -1, -1)
    ]


def e1rm_history(logs: Sequence[WorkoutLog], exercise_name: str) -> list[tuple[str, float]]:
    """
    Best e1RM per session for one exercise (case-insensitive name match).

    Returns:
        Chronological list of (date, e1RM); sessions without a loaded set are skipped
    """
    target = exercise_name.strip().lower()
    points: list[tuple[str, float]] = []
    for log in sorted(logs, key=lambda l: l.date):
        best = 0.0
        for ex in log.exercises:
            if ex.is_warmup or ex.name.strip().lower() != target:
                continue
            best = max(best, exercise_e1rm(ex))
        if best > 0:
            points.append((log.date, best))
    return points


def e1rm_progressions(logs: Sequence[WorkoutLog]) -> dict[str, list[tuple[str, float]]]:
    """e1RM time series for every loaded exercise, keyed by exercise name as logged."""
    series: dict[str, list[tuple[str, float]]] = {}
    for log in sorted(logs, key=lambda l: l.date):
        per_session: dict[str, float] = {}
        for ex in log.exercises:
            if ex.is_warmup:
                continue
            e = exercise_e1rm(ex)
            if e > 0:
                per_session[ex.name] = max(per_session.get(ex.name, 0.0), e)
        for name, e in per_session.items():
            series.setdefault(name, []).append((log.date, e))
    return series


def personal_records(logs: Sequence[WorkoutLog]) -> list[PersonalRecord]:
    """
    Best e1RM ever per exercise.

    Ties keep the earliest date. Sorted by e1RM, highest first.
    """
    records: dict[str, PersonalRecord] = {}
    for log in sorted(logs, key=lambda l: l.date):
        for ex in log.exercises:
            if ex.is_warmup:
                continue
            best = exercise_best_set(ex)
            if best is None:
                continue
            e = set_e1rm(best)
            current = records.get(ex.name)
            if current is None or e > current.e1rm:
                records[ex.name] = PersonalRecord(
                    exercise=ex.name,
                    e1rm=round(e, 1),
                    weight_kg=best.weight_kg or 0.0,
                    reps=best.reps or 0,
                    date=log.date,
                )
    return sorted(records.values(), key=lambda r: (-r.e1rm, r.exercise))


def relative_strength(e1rm: float, bodyweight_kg: float) -> float:
    """e1RM / body weight, rounded to 2 dp (0 for a non-positive body weight)."""
    if bodyweight_kg <= 0:
        return 0.0
    return round(e1rm / bodyweight_kg, 2)


def linear_slope(values: Sequence[float]) -> float:
    """
    Least-squares slope of values against their index.

    slope = sum((x - x_mean)(y - y_mean)) / sum((x - x_mean)^2)

    Returns:
        Slope per step (0 for fewer than 2 values)
    """
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(values) / n
    numerator = sum((i - x_mean) * (y - y_mean) for i, y in enumerate(values))
    denominator = sum((i - x_mean) ** 2 for i in range(n))
    return numerator / denominator if denominator else 0.0
