"""
Readiness-based auto-regulation.

Turns a pre-workout check-in into a Green / Yellow / Red status and
adjusts the day's prescription before the workout starts:

- Red:    sets - 1 (never below 2, never above the prescription), weight x 0.90
- Yellow: weight x 0.95
- Green:  unchanged

Adjusted weights are rounded half-up to whole kilograms. adapt() is pure
and always works from the original prescription: adjusted exercises carry
their unadjusted sets and weight, and warm-ups already in the input are
dropped and re-synthesized, so adapting twice with the same readiness
yields the same session.
"""

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from .config import (
    MIN_SETS_AFTER_REDUCTION,
    READINESS_RED_BELOW,
    READINESS_YELLOW_MAX,
    RED_SET_REDUCTION,
    RED_WEIGHT_FACTOR,
    WARMUP_MIN_WORKING_WEIGHT_KG,
    WARMUP_REST_SECONDS,
    WARMUP_ROUNDING_KG,
    WARMUP_STEPS,
    YELLOW_WEIGHT_FACTOR,
)
from .models import Exercise, ReadinessData, ReadinessStatus, Session


def round_half_up(value: float, step: float = 1.0) -> float:
    """
    Round to the nearest multiple of step, ties away from zero.

    Decimal arithmetic keeps 47.5 from becoming 47 through float error.
    """
    d_step = Decimal(str(step))
    units = (Decimal(str(value)) / d_step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(units * d_step)


def classify_readiness(score: int) -> ReadinessStatus:
    """Map a composite readiness score (4..20) to a status."""
    if score < READINESS_RED_BELOW:
        return "Red"
    if score <= READINESS_YELLOW_MAX:
        return "Yellow"
    return "Green"


def compute_readiness(sleep: int, nutrition: int, stress: int, soreness: int) -> ReadinessData:
    """
    Build ReadinessData from four 1..5 self-report scores.

    Higher is better on every scale (5 = slept great / no stress / fresh).

    Raises:
        ValueError: If a score is outside 1..5
    """
    status = classify_readiness(sleep + nutrition + stress + soreness)
    return ReadinessData(
        sleep=sleep,
        nutrition=nutrition,
        stress=stress,
        soreness=soreness,
        status=status,
    )


def _scaled_weight(weight_kg: float, factor: float) -> float:
    return round_half_up(float(Decimal(str(weight_kg)) * Decimal(str(factor))))


def adjust_exercise(exercise: Exercise, status: ReadinessStatus | None) -> Exercise:
    """
    Apply the status rules to one exercise; warm-ups and unloaded work pass through.

    An already adjusted exercise is first restored to its prescription, so
    the rules never stack.
    """
    if exercise.is_warmup:
        return exercise
    base = exercise.prescription()
    if not base.weight_kg or status in (None, "Green"):
        return base
    sets = base.sets
    factor = YELLOW_WEIGHT_FACTOR
    if status == "Red":
        sets = min(base.sets, max(MIN_SETS_AFTER_REDUCTION, base.sets - RED_SET_REDUCTION))
        factor = RED_WEIGHT_FACTOR
    return replace(
        base,
        sets=sets,
        weight_kg=_scaled_weight(base.weight_kg, factor),
        prescribed_sets=base.sets,
        prescribed_weight_kg=base.weight_kg,
    )


def generate_warmup_sets(exercise: Exercise) -> list[Exercise]:
    """
    Ramp-up sets for a loaded first exercise.

    Working weight > 20 kg gets 50 % x 8 and 70 % x 5; above 60 kg a
    third set of 85 % x 3 is added. Weights round to the nearest 2.5 kg.

    Returns:
        Warm-up exercises in lifting order (empty if none are needed)
    """
    working = exercise.weight_kg
    if not working or working <= WARMUP_MIN_WORKING_WEIGHT_KG:
        return []

    warmups: list[Exercise] = []
    for threshold, fraction, reps in WARMUP_STEPS:
        if working <= threshold:
            continue
        pct = int(round(fraction * 100))
        warmups.append(
            Exercise(
                name=f"Warm-up {pct}%: {exercise.name}",
                sets=1,
                reps=str(reps),
                weight_kg=round_half_up(working * fraction, WARMUP_ROUNDING_KG),
                movement_type=exercise.movement_type,
                rest_seconds=WARMUP_REST_SECONDS,
                is_warmup=True,
            )
        )
    return warmups


def adapt(session: Session, readiness: ReadinessData | None) -> Session:
    """
    Adjust a session to the day's readiness and prepend warm-ups.

    Args:
        session: Prescribed session (any warm-ups in it are discarded)
        readiness: Today's check-in, or None to skip auto-regulation

    Returns:
        New Session; the input is not modified
    """
    status = readiness.status if readiness is not None else None
    working = [adjust_exercise(e, status) for e in session.working_exercises]
    if not working:
        return replace(session, exercises=list(session.exercises))
    return replace(session, exercises=generate_warmup_sets(working[0]) + working)
