"""
Data models for liftcoach.

Template types (Exercise, Session, Program, ReadinessData) are frozen:
adaptation produces new instances instead of mutating prescriptions.
Workout-tracking types (CompletedSet, ActiveWorkoutState) are mutable and
owned by the session state machine.

Optional numeric fields use None for "not yet entered"; an explicit 0 is
a real value.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal

from .config import READINESS_SCORE_MAX, READINESS_SCORE_MIN, RIR_MAX, RIR_MIN

MovementType = Literal["strength", "bodyweight", "cardio", "isometric"]
MovementPattern = Literal["push", "pull", "squat", "hinge", "core", "other"]
ReadinessStatus = Literal["Green", "Yellow", "Red"]
Gender = Literal["male", "female"]
Experience = Literal["beginner", "intermediate", "advanced"]
CompletionLevel = Literal["yes", "mostly", "no"]
WorkoutStatus = Literal["not_started", "in_progress", "stale", "completed", "abandoned"]
SetField = Literal["reps", "weight", "rir"]
StrengthLevel = Literal["beginner", "novice", "intermediate", "advanced", "elite"]
Trend = Literal["improving", "stable", "declining"]
Severity = Literal["mild", "moderate", "severe"]
ScheduleKind = Literal["rest", "planned", "completed"]
StreakGranularity = Literal["day", "week"]

MOVEMENT_TYPES: tuple[str, ...] = ("strength", "bodyweight", "cardio", "isometric")
STRENGTH_LEVELS: tuple[StrengthLevel, ...] = (
    "beginner",
    "novice",
    "intermediate",
    "advanced",
    "elite",
)
SEVERITY_ORDER: dict[str, int] = {"severe": 0, "moderate": 1, "mild": 2}


def validate_iso_date(date_str: str) -> None:
    """Raise ValueError unless date_str is a real YYYY-MM-DD date."""
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e


def _check_score(value: int, name: str) -> None:
    if not READINESS_SCORE_MIN <= value <= READINESS_SCORE_MAX:
        raise ValueError(
            f"{name} must be between {READINESS_SCORE_MIN} and {READINESS_SCORE_MAX}, got {value}"
        )


@dataclass
class Profile:
    """
    User attributes that drive scheduling and strength classification.

    ``preferred_days`` holds weekday indices with 0 = Sunday .. 6 = Saturday.
    An empty list means every day is a training day.
    """

    gender: Gender
    age: int
    weight_kg: float
    height_cm: int
    experience: Experience = "beginner"
    goal: str = "strength"
    preferred_days: list[int] = field(default_factory=lambda: [1, 3, 5])
    sessions_per_week: int = 3
    session_minutes: int = 60
    location: str = "gym"
    injuries: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate profile data."""
        if self.gender not in ("male", "female"):
            raise ValueError(f"Invalid gender: {self.gender}")
        if self.age <= 0:
            raise ValueError("age must be positive")
        if self.weight_kg <= 0:
            raise ValueError("weight_kg must be positive")
        if self.height_cm <= 0:
            raise ValueError("height_cm must be positive")
        if self.experience not in ("beginner", "intermediate", "advanced"):
            raise ValueError(f"Invalid experience: {self.experience}")
        for day in self.preferred_days:
            if not 0 <= day <= 6:
                raise ValueError(f"preferred_days entries must be 0..6, got {day}")
        if self.sessions_per_week <= 0:
            raise ValueError("sessions_per_week must be positive")


@dataclass(frozen=True)
class Exercise:
    """
    One prescribed exercise inside a session template.

    ``reps`` is free text: a range ("8-12"), a count ("5") or a duration
    ("45s") for timed work. ``movement_type`` may be None when the program
    source did not tag it; the movement classifier fills the gap.

    ``prescribed_sets`` and ``prescribed_weight_kg`` are only set on
    auto-regulated copies and hold the values before adjustment.
    """

    name: str
    sets: int
    reps: str
    weight_kg: float | None = None
    movement_type: MovementType | None = "strength"
    rest_seconds: int = 90
    technique: str | None = None
    is_warmup: bool = False
    prescribed_sets: int | None = None
    prescribed_weight_kg: float | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Exercise name must be non-empty")
        if self.sets <= 0:
            raise ValueError(f"{self.name}: sets must be positive")
        if self.weight_kg is not None and self.weight_kg < 0:
            raise ValueError(f"{self.name}: weight_kg must be non-negative")
        if self.rest_seconds < 0:
            raise ValueError(f"{self.name}: rest_seconds must be non-negative")
        if self.movement_type is not None and self.movement_type not in MOVEMENT_TYPES:
            raise ValueError(f"{self.name}: invalid movement_type {self.movement_type!r}")

    @property
    def is_adjusted(self) -> bool:
        return self.prescribed_sets is not None or self.prescribed_weight_kg is not None

    def prescription(self) -> "Exercise":
        """Return the exercise as originally prescribed, before any adjustment."""
        if not self.is_adjusted:
            return self
        return replace(
            self,
            sets=self.sets if self.prescribed_sets is None else self.prescribed_sets,
            weight_kg=self.weight_kg if self.prescribed_weight_kg is None else self.prescribed_weight_kg,
            prescribed_sets=None,
            prescribed_weight_kg=None,
        )


@dataclass(frozen=True)
class Session:
    """A named, ordered list of exercises. Never empty."""

    name: str
    exercises: list[Exercise]

    def __post_init__(self) -> None:
        if not self.exercises:
            raise ValueError(f"Session {self.name!r} has no exercises")

    @property
    def working_exercises(self) -> list[Exercise]:
        """Exercises excluding synthesized warm-ups."""
        return [e for e in self.exercises if not e.is_warmup]


@dataclass(frozen=True)
class Program:
    """
    Ordered list of sessions that repeat in rotation.

    An empty program is representable so that loading never fails; the
    scheduler refuses to schedule from it.
    """

    sessions: list[Session] = field(default_factory=list)
    name: str = "Program"

    def find_session(self, name: str) -> Session | None:
        """Return the session with the given name, or None."""
        for session in self.sessions:
            if session.name == name:
                return session
        return None

    def index_of(self, name: str) -> int | None:
        """Return the rotation index of the named session, or None."""
        for i, session in enumerate(self.sessions):
            if session.name == name:
                return i
        return None


@dataclass(frozen=True)
class ReadinessData:
    """Pre-workout self-report. Scores are 1 (worst) .. 5 (best)."""

    sleep: int
    nutrition: int
    stress: int
    soreness: int
    status: ReadinessStatus

    def __post_init__(self) -> None:
        for name in ("sleep", "nutrition", "stress", "soreness"):
            _check_score(getattr(self, name), name)
        if self.status not in ("Green", "Yellow", "Red"):
            raise ValueError(f"Invalid readiness status: {self.status}")

    @property
    def score(self) -> int:
        """Composite score, 4..20."""
        return self.sleep + self.nutrition + self.stress + self.soreness


@dataclass
class CompletedSet:
    """
    One set as performed.

    ``reps``/``weight_kg``/``rir`` are None until the user enters them.
    ``target_reps``/``target_weight_kg`` carry the prescription the set was
    seeded from.
    """

    reps: int | None = None
    weight_kg: float | None = None
    rir: int | None = None
    is_completed: bool = False
    target_reps: str = ""
    target_weight_kg: float | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.reps is not None and self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.weight_kg is not None and self.weight_kg < 0:
            raise ValueError("weight_kg must be non-negative")
        if self.rir is not None and not RIR_MIN <= self.rir <= RIR_MAX:
            raise ValueError(f"rir must be between {RIR_MIN} and {RIR_MAX}, got {self.rir}")


@dataclass
class CompletedExercise:
    """An exercise template plus the sets actually performed."""

    exercise: Exercise
    sets: list[CompletedSet] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.exercise.name

    @property
    def is_warmup(self) -> bool:
        return self.exercise.is_warmup


@dataclass(frozen=True)
class PainReport:
    """Pain reported during or after a workout."""

    has_pain: bool = False
    location: str | None = None
    details: str | None = None


@dataclass(frozen=True)
class WorkoutFeedback:
    """Post-workout feedback."""

    completion: CompletionLevel = "yes"
    pain: PainReport = field(default_factory=PainReport)
    pump_quality: int | None = None  # 1..5

    def __post_init__(self) -> None:
        if self.completion not in ("yes", "mostly", "no"):
            raise ValueError(f"Invalid completion: {self.completion}")
        if self.pump_quality is not None:
            _check_score(self.pump_quality, "pump_quality")


@dataclass(frozen=True)
class WorkoutLog:
    """
    A finished workout. Immutable; history is append-only.

    Warm-up exercises are never stored here.
    """

    session_name: str
    date: str  # ISO format: YYYY-MM-DD
    start_time: datetime
    duration_seconds: int
    exercises: list[CompletedExercise]
    readiness: ReadinessData | None = None
    feedback: WorkoutFeedback | None = None

    def __post_init__(self) -> None:
        """Validate log data."""
        validate_iso_date(self.date)
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")


@dataclass
class ActiveWorkoutState:
    """In-progress workout snapshot, persisted after every mutation."""

    session_name: str
    exercises: list[CompletedExercise]
    start_time: datetime
    last_activity: datetime
    readiness: ReadinessData | None = None
    pain: PainReport | None = None  # reported mid-workout


# =============================================================================
# Engine results
# =============================================================================


@dataclass(frozen=True)
class ScheduleResult:
    """What the scheduler decided for one date."""

    date: str
    kind: ScheduleKind
    session: Session | None = None
    rotation_index: int | None = None
    log: WorkoutLog | None = None


@dataclass(frozen=True)
class ImbalanceReport:
    """A disproportion between complementary movement patterns or lifts."""

    category: str  # e.g. "push_pull", "squat_bench"
    severity: Severity
    ratio: float
    description: str
    recommendation: str
    exercises: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.severity not in SEVERITY_ORDER:
            raise ValueError(f"Invalid severity: {self.severity}")


@dataclass(frozen=True)
class PersonalRecord:
    """Best e1RM ever recorded for one exercise."""

    exercise: str
    e1rm: float
    weight_kg: float
    reps: int
    date: str


@dataclass(frozen=True)
class LiftAnalysis:
    """Strength classification of one key lift."""

    lift: str  # standard key, e.g. "squat"
    exercise: str  # name as logged
    e1rm: float
    relative_strength: float  # e1RM / body weight
    level: StrengthLevel
    percentile: int  # 0..100 within the standards bands
    next_level_target_kg: float | None
    trend: Trend


@dataclass(frozen=True)
class PlateauReport:
    """An exercise whose best e1RM has stalled."""

    exercise: str
    weeks_stuck: int
    last_pr_date: str
    best_e1rm: float
    current_e1rm: float
    sessions: int


@dataclass(frozen=True)
class PainPattern:
    """Recurring pain at one body location and what was trained alongside it."""

    location: str
    frequency: int
    last_occurrence: str
    exercises: dict[str, int]  # exercise name -> co-occurrence count
    movement_pattern: MovementPattern


@dataclass(frozen=True)
class ReadinessPattern:
    """Averages of pre-workout readiness check-ins."""

    samples: int
    avg_sleep: float
    avg_stress: float
    avg_soreness: float
    chronic_low_sleep: bool
    high_stress: bool


@dataclass(frozen=True)
class StreakResult:
    """Current and best streak in the chosen unit."""

    current: int
    best: int
    granularity: StreakGranularity


@dataclass(frozen=True)
class StrengthInsightsData:
    """Everything the strength dashboard and the AI narrative consume."""

    lifts: list[LiftAnalysis]
    overall_level: StrengthLevel | None
    imbalances: list[ImbalanceReport]
    plateaus: list[PlateauReport]
    pain_patterns: list[PainPattern]
    readiness: ReadinessPattern | None
    personal_records: list[PersonalRecord]
