"""
Configuration constants for the adaptive training engine.

All tunable thresholds are centralized here. Runtime settings that vary per
installation (data directory, AI endpoint) live in settings.yaml instead;
see core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# READINESS CHECK-IN
# =============================================================================

READINESS_SCORE_MIN: Final[int] = 1  # Each self-report score is 1 (worst) .. 5 (best)
READINESS_SCORE_MAX: Final[int] = 5
READINESS_RED_BELOW: Final[int] = 12  # Composite (4..20) below this is Red
READINESS_YELLOW_MAX: Final[int] = 15  # Composite 12..15 is Yellow, above is Green

# =============================================================================
# AUTO-REGULATION
# =============================================================================

RED_WEIGHT_FACTOR: Final[float] = 0.90
YELLOW_WEIGHT_FACTOR: Final[float] = 0.95
RED_SET_REDUCTION: Final[int] = 1
MIN_SETS_AFTER_REDUCTION: Final[int] = 2

# =============================================================================
# WARM-UP SYNTHESIS
# =============================================================================

WARMUP_MIN_WORKING_WEIGHT_KG: Final[float] = 20.0  # Empty barbell; no warm-up at or below

# (working weight must exceed, fraction of working weight, reps)
WARMUP_STEPS: Final[tuple[tuple[float, float, int], ...]] = (
    (20.0, 0.50, 8),
    (20.0, 0.70, 5),
    (60.0, 0.85, 3),
)
WARMUP_ROUNDING_KG: Final[float] = 2.5  # Smallest plate pair
WARMUP_REST_SECONDS: Final[int] = 60

# =============================================================================
# SESSION STATE MACHINE
# =============================================================================

STALE_THRESHOLD_SECONDS: Final[int] = 3600  # Inactivity gap that makes a workout stale
RIR_MIN: Final[int] = 0
RIR_MAX: Final[int] = 3  # "3+" is recorded as 3

# =============================================================================
# SCHEDULING
# =============================================================================

DEFAULT_PREFERRED_DAYS: Final[tuple[int, ...]] = (1, 3, 5)  # Mon / Wed / Fri, 0 = Sunday
UPCOMING_DAYS_DEFAULT: Final[int] = 7

# =============================================================================
# ANALYTICS
# =============================================================================

MIN_LOGS_FOR_IMBALANCE: Final[int] = 5
IMBALANCE_BAND: Final[float] = 1.5  # Acceptable dominant:weak ratio
IMBALANCE_MILD_MAX: Final[float] = 2.0  # Ratio 1.5..2.0 is mild
IMBALANCE_MODERATE_MAX: Final[float] = 2.5  # 2.0..2.5 moderate, above is severe

# Lift-to-lift e1RM ratios of a balanced lifter (numerator, denominator, ratio)
IDEAL_LIFT_RATIOS: Final[tuple[tuple[str, str, float], ...]] = (
    ("squat", "bench", 1.33),
    ("deadlift", "squat", 1.20),
    ("row", "bench", 1.00),
    ("ohp", "bench", 0.67),
)
LIFT_RATIO_MILD_DEVIATION: Final[float] = 0.20
LIFT_RATIO_MODERATE_DEVIATION: Final[float] = 0.25
LIFT_RATIO_SEVERE_DEVIATION: Final[float] = 0.35

PLATEAU_MIN_SESSIONS: Final[int] = 4
PLATEAU_WEEKS: Final[int] = 3
PLATEAU_EPSILON: Final[float] = 0.01  # A PR must beat the prior best by more than 1 %

TREND_WINDOW: Final[int] = 6  # Last N sessions of e1RM feed the slope
TREND_MIN_POINTS: Final[int] = 3
TREND_CHANGE_THRESHOLD: Final[float] = 0.05  # Fitted change across the window vs mean

PAIN_MIN_OCCURRENCES: Final[int] = 2
PAIN_MAX_EXERCISES: Final[int] = 5

LOW_READINESS_AVERAGE: Final[float] = 2.5  # Mean sleep/stress score below this is flagged

WEEKLY_VOLUME_WEEKS: Final[int] = 8

# =============================================================================
# CACHES
# =============================================================================

INSIGHT_CACHE_TTL_SECONDS: Final[int] = 6 * 3600
INSIGHT_CACHE_VERSION: Final[int] = 1
IMBALANCE_CACHE_TTL_SECONDS: Final[int] = 24 * 3600
IMBALANCE_ALGORITHM_VERSION: Final[int] = 2  # Bump when imbalance classification changes

# =============================================================================
# AI INSIGHT COLLABORATOR
# =============================================================================

INSIGHT_RETRIES: Final[int] = 1
INSIGHT_RECENT_LOGS: Final[int] = 5

INSIGHT_FALLBACKS: Final[dict[str, str]] = {
    "daily_insight": (
        "Consistency beats intensity. Show up, warm up properly and "
        "leave a rep or two in the tank on your first sets."
    ),
    "coach_feedback": (
        "Workout saved. Note how the last sets felt and aim to match "
        "or slightly beat today's numbers next time."
    ),
    "strength_narrative": (
        "Strength analysis is unavailable right now. Keep logging your "
        "main lifts and check back after your next workout."
    ),
}
