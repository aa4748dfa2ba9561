"""
Analytics engine over the full workout history.

Streaks, strength levels against population standards, movement-pattern
imbalances, plateaus, pain and readiness patterns. Every function is pure
and recomputes from the logs it is given, so results stay consistent
after a history import.
"""

from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Sequence

from .config import (
    IDEAL_LIFT_RATIOS,
    IMBALANCE_BAND,
    IMBALANCE_MILD_MAX,
    IMBALANCE_MODERATE_MAX,
    LIFT_RATIO_MILD_DEVIATION,
    LIFT_RATIO_MODERATE_DEVIATION,
    LIFT_RATIO_SEVERE_DEVIATION,
    LOW_READINESS_AVERAGE,
    MIN_LOGS_FOR_IMBALANCE,
    PAIN_MAX_EXERCISES,
    PAIN_MIN_OCCURRENCES,
    PLATEAU_EPSILON,
    PLATEAU_MIN_SESSIONS,
    PLATEAU_WEEKS,
    TREND_CHANGE_THRESHOLD,
    TREND_MIN_POINTS,
    TREND_WINDOW,
)
from .exercises.base import StrengthStandard
from .exercises.classifier import DEFAULT_CLASSIFIER, MovementClassifier
from .exercises.registry import STANDARDS_REGISTRY, find_standard
from .metrics import (
    e1rm_progressions,
    exercise_e1rm,
    exercise_volume,
    linear_slope,
    personal_records,
    relative_strength,
    week_start,
)
from .models import (
    SEVERITY_ORDER,
    STRENGTH_LEVELS,
    ImbalanceReport,
    LiftAnalysis,
    MovementPattern,
    PainPattern,
    PlateauReport,
    Profile,
    ReadinessPattern,
    Severity,
    StreakGranularity,
    StreakResult,
    StrengthInsightsData,
    StrengthLevel,
    Trend,
    WorkoutLog,
)
from .scheduler import weekday_index

# (category, pattern group A, pattern group B)
VOLUME_PAIRS: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("push_pull", ("push",), ("pull",)),
    ("squat_hinge", ("squat",), ("hinge",)),
    ("upper_lower", ("push", "pull"), ("squat", "hinge")),
)

_RECOMMENDATIONS: dict[str, str] = {
    "push": "Add rows, pull-ups or face pulls until pulling volume catches up with pressing.",
    "pull": "Add pressing work (bench, overhead press, dips) to balance your pulling.",
    "squat": "Add hip hinges (Romanian deadlifts, hip thrusts) to balance knee-dominant work.",
    "hinge": "Add squats, lunges or leg presses to balance hip-dominant work.",
    "push+pull": "Your lower body is under-trained: add squat and hinge sessions.",
    "squat+hinge": "Your upper body is under-trained: add pressing and pulling work.",
}


# =============================================================================
# Streaks
# =============================================================================


def _dates(logs: Sequence[WorkoutLog]) -> set[date]:
    return {date.fromisoformat(log.date) for log in logs}


def calculate_streaks(
    logs: Sequence[WorkoutLog],
    preferred_days: Sequence[int],
    today: date,
    granularity: StreakGranularity | None = None,
) -> StreakResult:
    """
    Current and best training streak.

    Day granularity walks every calendar day from the first workout to
    today. A workout extends the streak (workouts on unscheduled days
    count as bonus days); a scheduled day without a workout resets it,
    except today, which is not over yet. Off days never break a streak.

    Week granularity counts consecutive ISO weeks with at least one
    workout; the current week does not break the streak while it is
    still empty. It is the default when no preferred days are set.

    Args:
        logs: Workout history
        preferred_days: Scheduled weekdays, 0 = Sunday
        today: Reference date
        granularity: "day" or "week" (default: by preferred_days)

    Returns:
        StreakResult
    """
    if granularity is None:
        granularity = "day" if preferred_days else "week"
    trained = {d for d in _dates(logs) if d <= today}
    if not trained:
        return StreakResult(current=0, best=0, granularity=granularity)

    run = best = 0
    if granularity == "day":
        scheduled = set(preferred_days)
        day = min(trained)
        while day <= today:
            if day in trained:
                run += 1
                best = max(best, run)
            elif day != today and (not scheduled or weekday_index(day) in scheduled):
                run = 0
            day += timedelta(days=1)
    else:
        weeks = {week_start(d) for d in trained}
        current_week = week_start(today)
        week = min(weeks)
        while week <= current_week:
            if week in weeks:
                run += 1
                best = max(best, run)
            elif week != current_week:
                run = 0
            week += timedelta(weeks=1)

    return StreakResult(current=run, best=best, granularity=granularity)


# =============================================================================
# Strength levels
# =============================================================================


def classify_strength(
    relative: float,
    standard: StrengthStandard,
    gender: str,
) -> tuple[StrengthLevel, int]:
    """
    Bucket a relative-strength ratio into a level and a 0..100 percentile.

    Each of the four bands between the five thresholds spans 20
    percentile points; at or above elite is 100.
    """
    bands = standard.bands_for(gender)
    # bands: untrained, beginner, intermediate, advanced, elite
    level_index = sum(1 for threshold in bands[1:] if relative >= threshold)
    level = STRENGTH_LEVELS[level_index]

    percentile = 100
    for i in range(len(bands) - 1):
        if relative < bands[i + 1]:
            span = bands[i + 1] - bands[i]
            position = (relative - bands[i]) / span if span else 0.0
            percentile = round(i * 20 + position * 20)
            break
    return level, max(0, min(100, percentile))


def next_level_target(
    level: StrengthLevel,
    bodyweight_kg: float,
    standard: StrengthStandard,
    gender: str,
) -> float | None:
    """e1RM (kg) needed to reach the next level; None at elite."""
    index = STRENGTH_LEVELS.index(level)
    if index >= len(STRENGTH_LEVELS) - 1:
        return None
    return float(round(standard.bands_for(gender)[index + 1] * bodyweight_kg))


def lift_trend(values: Sequence[float]) -> Trend:
    """
    Direction of the last sessions' e1RM.

    Fits a least-squares line to the last TREND_WINDOW values; the fitted
    change across the window relative to the window mean decides.
    """
    window = list(values)[-TREND_WINDOW:]
    if len(window) < TREND_MIN_POINTS:
        return "stable"
    mean = sum(window) / len(window)
    if mean <= 0:
        return "stable"
    change = linear_slope(window) * (len(window) - 1) / mean
    if change > TREND_CHANGE_THRESHOLD:
        return "improving"
    if change < -TREND_CHANGE_THRESHOLD:
        return "declining"
    return "stable"


def _lift_histories(
    logs: Sequence[WorkoutLog],
    registry: dict[str, StrengthStandard],
) -> dict[str, tuple[str, list[float]]]:
    """lift_id -> (latest exercise name, per-session best e1RM in date order)."""
    histories: dict[str, tuple[str, list[float]]] = {}
    for log in sorted(logs, key=lambda l: l.date):
        per_session: dict[str, tuple[str, float]] = {}
        for ex in log.exercises:
            if ex.is_warmup:
                continue
            std = find_standard(ex.name, registry)
            e = exercise_e1rm(ex)
            if std is None or e <= 0:
                continue
            if e > per_session.get(std.lift_id, ("", 0.0))[1]:
                per_session[std.lift_id] = (ex.name, e)
        for lift_id, (name, e) in per_session.items():
            _, series = histories.get(lift_id, (name, []))
            series.append(e)
            histories[lift_id] = (name, series)
    return histories


def analyze_strength(
    logs: Sequence[WorkoutLog],
    profile: Profile,
    registry: dict[str, StrengthStandard] | None = None,
) -> list[LiftAnalysis]:
    """
    Classify each key lift present in the history.

    Returns:
        One LiftAnalysis per lift with loaded sets, in registry order
    """
    registry = STANDARDS_REGISTRY if registry is None else registry
    histories = _lift_histories(logs, registry)
    results: list[LiftAnalysis] = []
    for lift_id, std in registry.items():
        if lift_id not in histories:
            continue
        name, series = histories[lift_id]
        best = max(series)
        rel = relative_strength(best, profile.weight_kg)
        level, percentile = classify_strength(rel, std, profile.gender)
        results.append(
            LiftAnalysis(
                lift=lift_id,
                exercise=name,
                e1rm=round(best, 1),
                relative_strength=rel,
                level=level,
                percentile=percentile,
                next_level_target_kg=next_level_target(level, profile.weight_kg, std, profile.gender),
                trend=lift_trend(series),
            )
        )
    return results


def overall_level(lifts: Sequence[LiftAnalysis]) -> StrengthLevel | None:
    """Level at the rounded mean level index of all analysed lifts."""
    if not lifts:
        return None
    mean = sum(STRENGTH_LEVELS.index(l.level) for l in lifts) / len(lifts)
    return STRENGTH_LEVELS[int(mean + 0.5)]


# =============================================================================
# Imbalances
# =============================================================================


def volume_by_pattern(
    logs: Sequence[WorkoutLog],
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
) -> tuple[dict[str, float], dict[str, dict[str, float]]]:
    """
    Load volume per movement pattern.

    Returns:
        (pattern -> volume, pattern -> {exercise name -> volume})
    """
    totals: dict[str, float] = defaultdict(float)
    by_exercise: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for log in logs:
        for ex in log.exercises:
            if ex.is_warmup:
                continue
            v = exercise_volume(ex, classifier)
            if v <= 0:
                continue
            pattern = classifier.movement_pattern(ex.name)
            totals[pattern] += v
            by_exercise[pattern][ex.name] += v
    return dict(totals), {k: dict(v) for k, v in by_exercise.items()}


def imbalance_severity(ratio: float) -> Severity:
    """Severity of a dominant:weak volume ratio already outside the band."""
    if ratio <= IMBALANCE_MILD_MAX:
        return "mild"
    if ratio <= IMBALANCE_MODERATE_MAX:
        return "moderate"
    return "severe"


def _lift_ratio_severity(deviation: float) -> Severity | None:
    if deviation > LIFT_RATIO_SEVERE_DEVIATION:
        return "severe"
    if deviation > LIFT_RATIO_MODERATE_DEVIATION:
        return "moderate"
    if deviation > LIFT_RATIO_MILD_DEVIATION:
        return "mild"
    return None


def _volume_imbalances(
    logs: Sequence[WorkoutLog],
    classifier: MovementClassifier,
) -> list[ImbalanceReport]:
    totals, by_exercise = volume_by_pattern(logs, classifier)
    reports: list[ImbalanceReport] = []
    for category, side_a, side_b in VOLUME_PAIRS:
        vol_a = sum(totals.get(p, 0.0) for p in side_a)
        vol_b = sum(totals.get(p, 0.0) for p in side_b)
        if vol_a <= 0 and vol_b <= 0:
            continue
        dominant, weak = (side_a, side_b) if vol_a >= vol_b else (side_b, side_a)
        strong_vol, weak_vol = max(vol_a, vol_b), min(vol_a, vol_b)
        ratio = strong_vol / weak_vol if weak_vol > 0 else float("inf")
        if ratio <= IMBALANCE_BAND:
            continue
        ratio = round(min(ratio, 99.0), 2)
        names: Counter[str] = Counter()
        for p in dominant + weak:
            names.update(by_exercise.get(p, {}))
        dom_label, weak_label = "+".join(dominant), "+".join(weak)
        reports.append(
            ImbalanceReport(
                category=category,
                severity=imbalance_severity(ratio),
                ratio=ratio,
                description=(
                    f"{dom_label.capitalize()} volume is {ratio:.1f}x {weak_label} volume "
                    f"({strong_vol:,.0f} vs {weak_vol:,.0f} kg)"
                ),
                recommendation=_RECOMMENDATIONS.get(dom_label, "Balance your training volume."),
                exercises=[name for name, _ in names.most_common(6)],
            )
        )
    return reports


def _lift_ratio_imbalances(
    logs: Sequence[WorkoutLog],
    registry: dict[str, StrengthStandard],
) -> list[ImbalanceReport]:
    histories = _lift_histories(logs, registry)
    best = {lift: (name, max(series)) for lift, (name, series) in histories.items()}
    reports: list[ImbalanceReport] = []
    for top, bottom, ideal in IDEAL_LIFT_RATIOS:
        if top not in best or bottom not in best:
            continue
        (top_name, top_e1rm), (bottom_name, bottom_e1rm) = best[top], best[bottom]
        actual = top_e1rm / bottom_e1rm
        deviation = abs(actual - ideal) / ideal
        severity = _lift_ratio_severity(deviation)
        if severity is None:
            continue
        weaker = bottom if actual > ideal else top
        reports.append(
            ImbalanceReport(
                category=f"{top}_{bottom}",
                severity=severity,
                ratio=round(actual, 2),
                description=(
                    f"{top_name} to {bottom_name} e1RM ratio is {actual:.2f} "
                    f"(balanced is about {ideal:.2f})"
                ),
                recommendation=f"Prioritise progression on {weaker} for the next few weeks.",
                exercises=[top_name, bottom_name],
            )
        )
    return reports


def detect_imbalances(
    logs: Sequence[WorkoutLog],
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
    registry: dict[str, StrengthStandard] | None = None,
) -> list[ImbalanceReport]:
    """
    Imbalance reports between complementary patterns and key lifts.

    Returns an empty list until MIN_LOGS_FOR_IMBALANCE workouts exist.

    Returns:
        Reports sorted severe first, then by ratio
    """
    if len(logs) < MIN_LOGS_FOR_IMBALANCE:
        return []
    registry = STANDARDS_REGISTRY if registry is None else registry
    reports = _volume_imbalances(logs, classifier) + _lift_ratio_imbalances(logs, registry)
    return sorted(reports, key=lambda r: (SEVERITY_ORDER[r.severity], -r.ratio))


# =============================================================================
# Plateaus
# =============================================================================


def detect_plateaus(
    logs: Sequence[WorkoutLog],
    as_of: date | None = None,
) -> list[PlateauReport]:
    """
    Exercises whose e1RM has not set a meaningful PR for PLATEAU_WEEKS.

    A PR is a session best more than PLATEAU_EPSILON above the previous
    PR. Only exercises with at least PLATEAU_MIN_SESSIONS loaded sessions
    are considered.

    Args:
        logs: Workout history
        as_of: Reference date (default: latest log date)

    Returns:
        Plateau reports, longest-stuck first
    """
    if not logs:
        return []
    if as_of is None:
        as_of = max(date.fromisoformat(log.date) for log in logs)

    reports: list[PlateauReport] = []
    for name, series in e1rm_progressions(logs).items():
        if len(series) < PLATEAU_MIN_SESSIONS:
            continue
        pr_date, pr_value = series[0]
        best = pr_value
        for day, e in series[1:]:
            if e > pr_value * (1 + PLATEAU_EPSILON):
                pr_date, pr_value = day, e
            best = max(best, e)
        weeks = (as_of - date.fromisoformat(pr_date)).days // 7
        if weeks >= PLATEAU_WEEKS:
            reports.append(
                PlateauReport(
                    exercise=name,
                    weeks_stuck=weeks,
                    last_pr_date=pr_date,
                    best_e1rm=round(best, 1),
                    current_e1rm=round(series[-1][1], 1),
                    sessions=len(series),
                )
            )
    return sorted(reports, key=lambda r: (-r.weeks_stuck, r.exercise))


# =============================================================================
# Pain and readiness patterns
# =============================================================================


def normalize_location(location: str) -> str:
    """Lower-case and collapse whitespace: "  Left  Knee " -> "left knee"."""
    return " ".join(location.lower().split())


def aggregate_pain_patterns(
    logs: Sequence[WorkoutLog],
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
    min_occurrences: int = PAIN_MIN_OCCURRENCES,
) -> list[PainPattern]:
    """
    Group pain reports by body location.

    Returns:
        Locations reported at least min_occurrences times, most frequent first
    """
    frequency: Counter[str] = Counter()
    last_seen: dict[str, str] = {}
    exercises: dict[str, Counter[str]] = defaultdict(Counter)
    for log in logs:
        pain = log.feedback.pain if log.feedback is not None else None
        if pain is None or not pain.has_pain or not pain.location:
            continue
        loc = normalize_location(pain.location)
        if not loc:
            continue
        frequency[loc] += 1
        last_seen[loc] = max(last_seen.get(loc, log.date), log.date)
        exercises[loc].update({ex.name for ex in log.exercises if not ex.is_warmup})

    patterns: list[PainPattern] = []
    for loc, count in frequency.items():
        if count < min_occurrences:
            continue
        top = exercises[loc].most_common(PAIN_MAX_EXERCISES)
        movement: Counter[MovementPattern] = Counter()
        for name, n in exercises[loc].items():
            movement[classifier.movement_pattern(name)] += n
        movement.pop("other", None)
        patterns.append(
            PainPattern(
                location=loc,
                frequency=count,
                last_occurrence=last_seen[loc],
                exercises=dict(top),
                movement_pattern=movement.most_common(1)[0][0] if movement else "other",
            )
        )
    return sorted(patterns, key=lambda p: (-p.frequency, p.location))


def readiness_patterns(logs: Sequence[WorkoutLog]) -> ReadinessPattern | None:
    """Average readiness scores; None when no log carries a check-in."""
    samples = [log.readiness for log in logs if log.readiness is not None]
    if not samples:
        return None
    n = len(samples)
    avg_sleep = sum(r.sleep for r in samples) / n
    avg_stress = sum(r.stress for r in samples) / n
    avg_soreness = sum(r.soreness for r in samples) / n
    return ReadinessPattern(
        samples=n,
        avg_sleep=round(avg_sleep, 2),
        avg_stress=round(avg_stress, 2),
        avg_soreness=round(avg_soreness, 2),
        chronic_low_sleep=avg_sleep < LOW_READINESS_AVERAGE,
        high_stress=avg_stress < LOW_READINESS_AVERAGE,
    )


def generate_strength_insights(
    logs: Sequence[WorkoutLog],
    profile: Profile,
    as_of: date | None = None,
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
    imbalances: list[ImbalanceReport] | None = None,
) -> StrengthInsightsData:
    """
    Bundle every strength analytic for the dashboard and the AI narrative.

    Args:
        imbalances: Precomputed (e.g. cached) imbalance reports; computed when None
    """
    lifts = analyze_strength(logs, profile)
    return StrengthInsightsData(
        lifts=lifts,
        overall_level=overall_level(lifts),
        imbalances=detect_imbalances(logs, classifier) if imbalances is None else imbalances,
        plateaus=detect_plateaus(logs, as_of),
        pain_patterns=aggregate_pain_patterns(logs, classifier),
        readiness=readiness_patterns(logs),
        personal_records=personal_records(logs),
    )
