"""
Session state machine for one in-progress workout.

States::

    not_started -> in_progress -> completed
                        |    ^
                        v    |  continue_stale()
                      stale -+-> abandoned (discard)

The full ActiveWorkoutState is written through the persistence port after
every mutation, so a killed process loses nothing already entered.
Staleness is evaluated lazily when a saved workout is resumed: there is
no background timer.
"""

import copy
import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import Callable, Protocol

from .config import RIR_MAX, RIR_MIN, STALE_THRESHOLD_SECONDS
from .errors import IncompleteWorkoutError, NoLongerValidError, SessionStateError
from .exercises.classifier import DEFAULT_CLASSIFIER, MovementClassifier
from .models import (
    ActiveWorkoutState,
    CompletedExercise,
    CompletedSet,
    Exercise,
    PainReport,
    Program,
    ReadinessData,
    Session,
    SetField,
    WorkoutFeedback,
    WorkoutLog,
    WorkoutStatus,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class WorkoutPersistence(Protocol):
    """Storage port used by the state machine (see io.history_store.HistoryStore)."""

    def load_active_state(self) -> ActiveWorkoutState | None: ...

    def save_active_state(self, state: ActiveWorkoutState) -> None: ...

    def clear_active_state(self) -> None: ...

    def append_log(self, log: WorkoutLog) -> None: ...


def parse_target_reps(reps: str) -> int | None:
    """
    Lower bound of a prescribed rep string.

    "8-12" -> 8, "5" -> 5, "45s" -> 45, "AMRAP" -> None
    """
    match = re.search(r"\d+", reps)
    return int(match.group()) if match else None


def seed_exercise(exercise: Exercise) -> CompletedExercise:
    """Empty CompletedSets carrying the exercise's prescription as targets."""
    return CompletedExercise(
        exercise=exercise,
        sets=[
            CompletedSet(target_reps=exercise.reps, target_weight_kg=exercise.weight_kg)
            for _ in range(exercise.sets)
        ],
    )


def merge_pain(feedback: WorkoutFeedback, reported: PainReport | None) -> WorkoutFeedback:
    """Fold pain reported mid-workout into the final feedback."""
    if reported is None or not reported.has_pain:
        return feedback
    final = feedback.pain
    if not final.has_pain:
        return replace(feedback, pain=reported)
    details = [d for d in (reported.details, final.details) if d]
    return replace(
        feedback,
        pain=PainReport(
            has_pain=True,
            location=final.location or reported.location,
            details="; ".join(details) or None,
        ),
    )


class SessionTracker:
    """
    Tracks set-by-set progress of one workout and turns it into a WorkoutLog.

    Args:
        store: Persistence port for the active state and the log history
        classifier: Movement classifier used by finish gating
        clock: Callable returning the current time (injectable for tests)
        stale_threshold_seconds: Inactivity gap after which a resumed workout is stale
    """

    def __init__(
        self,
        store: WorkoutPersistence,
        classifier: MovementClassifier = DEFAULT_CLASSIFIER,
        clock: Clock = datetime.now,
        stale_threshold_seconds: int = STALE_THRESHOLD_SECONDS,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._clock = clock
        self._stale_threshold = stale_threshold_seconds
        self.state: ActiveWorkoutState | None = None
        self.status: WorkoutStatus = "not_started"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, session: Session, readiness: ReadinessData | None = None) -> ActiveWorkoutState:
        """
        Begin a workout from an (already adapted) session.

        Raises:
            SessionStateError: If a workout is already in progress or stale
        """
        if self.status in ("in_progress", "stale"):
            raise SessionStateError(
                f"Workout '{self.state.session_name if self.state else '?'}' is already active"
            )
        now = self._clock()
        self.state = ActiveWorkoutState(
            session_name=session.name,
            exercises=[seed_exercise(e) for e in session.exercises],
            start_time=now,
            last_activity=now,
            readiness=readiness,
        )
        self.status = "in_progress"
        self._persist()
        logger.info("Started workout %s (%d exercises)", session.name, len(session.exercises))
        return self.state

    def resume(self, state: ActiveWorkoutState, program: Program) -> WorkoutStatus:
        """
        Re-attach a persisted workout.

        Returns:
            "in_progress", or "stale" if the last activity is older than
            the stale threshold

        Raises:
            NoLongerValidError: If the session is no longer in the program;
                the persisted state is discarded
        """
        if program.find_session(state.session_name) is None:
            self._store.clear_active_state()
            self.state = None
            self.status = "abandoned"
            logger.warning("Discarded saved workout %s: not in program", state.session_name)
            raise NoLongerValidError(state.session_name)

        self.state = state
        idle = (self._clock() - state.last_activity).total_seconds()
        if idle > self._stale_threshold:
            self.status = "stale"
            logger.info("Workout %s is stale (idle %.0f s)", state.session_name, idle)
        else:
            self.status = "in_progress"
            logger.info("Resumed workout %s", state.session_name)
        return self.status

    def restore(self, program: Program) -> WorkoutStatus:
        """Load the persisted workout, if any, and resume it."""
        state = self._store.load_active_state()
        if state is None:
            self.state = None
            self.status = "not_started"
            return self.status
        return self.resume(state, program)

    def continue_stale(self) -> None:
        """Re-enter in_progress from stale, refreshing the last-activity time."""
        if self.status != "stale":
            raise SessionStateError(f"Cannot continue: workout is {self.status}")
        self.status = "in_progress"
        self._touch()
        logger.info("Continuing stale workout %s", self._require_state().session_name)

    def discard(self) -> None:
        """Drop the workout without producing a log."""
        name = self.state.session_name if self.state else None
        self._store.clear_active_state()
        self.state = None
        self.status = "abandoned"
        logger.info("Discarded workout %s", name)

    def finish(self, feedback: WorkoutFeedback | None = None) -> WorkoutLog:
        """
        Close the workout and append it to history.

        Warm-ups are stripped; the log date is the finishing day and the
        duration runs from start to now.

        Raises:
            SessionStateError: If no workout is in progress
            IncompleteWorkoutError: If any set lacks valid values
            DuplicateLogError: If history already has a workout on the
                finishing day; the workout stays in progress
        """
        state = self._require_active()
        incomplete = self.first_incomplete_exercise()
        if incomplete is not None:
            raise IncompleteWorkoutError(incomplete, state.exercises[incomplete].name)

        now = self._clock()
        feedback = merge_pain(feedback or WorkoutFeedback(), state.pain)
        log = WorkoutLog(
            session_name=state.session_name,
            date=now.date().isoformat(),
            start_time=state.start_time,
            duration_seconds=max(0, int((now - state.start_time).total_seconds())),
            exercises=[copy.deepcopy(ex) for ex in state.exercises if not ex.is_warmup],
            readiness=state.readiness,
            feedback=feedback,
        )
        self._store.append_log(log)
        self._store.clear_active_state()
        self.state = None
        self.status = "completed"
        logger.info("Finished workout %s in %d s", log.session_name, log.duration_seconds)
        return log

    # ------------------------------------------------------------------
    # Set editing
    # ------------------------------------------------------------------

    def update_set(
        self,
        exercise_index: int,
        set_index: int,
        field: SetField,
        value: int | float | None,
    ) -> CompletedSet:
        """
        Enter or clear one value of a set.

        Weight entered on the first set fills every later set whose weight
        is still empty; any other reps/weight entry fills the next set only
        if it is empty. RIR is never carried forward.

        Raises:
            SessionStateError: If no workout is in progress or indices are out of range
            ValueError: If the value is invalid for the field
        """
        self._require_active()
        sets = self._sets(exercise_index)
        target = self._set(exercise_index, set_index)
        value = _validate_value(field, value)

        attr = _ATTRS[field]
        setattr(target, attr, value)

        if value is not None and field != "rir":
            if field == "weight" and set_index == 0:
                for later in sets[1:]:
                    if later.weight_kg is None:
                        later.weight_kg = value
            elif set_index + 1 < len(sets) and getattr(sets[set_index + 1], attr) is None:
                setattr(sets[set_index + 1], attr, value)

        self._touch()
        return target

    def toggle_set_complete(self, exercise_index: int, set_index: int) -> bool:
        """Flip a set's completion flag; value validity is not checked here."""
        self._require_active()
        target = self._set(exercise_index, set_index)
        target.is_completed = not target.is_completed
        self._touch()
        return target.is_completed

    def complete_as_prescribed(self, exercise_index: int, set_index: int) -> CompletedSet:
        """Fill empty reps/weight from the prescription and mark the set complete."""
        self._require_active()
        target = self._set(exercise_index, set_index)
        if target.reps is None:
            target.reps = parse_target_reps(target.target_reps)
        if target.weight_kg is None and target.target_weight_kg is not None:
            target.weight_kg = target.target_weight_kg
        target.is_completed = True
        self._touch()
        return target

    def report_pain(self, location: str, details: str | None = None) -> None:
        """Record pain felt during the workout; merged into the final feedback."""
        state = self._require_active()
        state.pain = PainReport(has_pain=True, location=location.strip() or None, details=details)
        self._touch()
        logger.info("Pain reported during %s: %s", state.session_name, location)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def first_incomplete_exercise(self) -> int | None:
        """Index of the first exercise with an invalid set, or None if all are valid."""
        state = self._require_state()
        for i, ex in enumerate(state.exercises):
            needs_load = self._classifier.requires_load(ex.exercise)
            if not ex.sets:
                return i
            for s in ex.sets:
                if s.reps is None or s.reps <= 0:
                    return i
                if needs_load and (s.weight_kg is None or s.weight_kg <= 0):
                    return i
        return None

    def can_finish(self) -> bool:
        """True iff every set of every exercise has valid reps (and weight where required)."""
        return self.state is not None and self.first_incomplete_exercise() is None

    def progress(self) -> tuple[int, int]:
        """(completed sets, total sets) across all exercises."""
        state = self._require_state()
        total = sum(len(ex.sets) for ex in state.exercises)
        done = sum(1 for ex in state.exercises for s in ex.sets if s.is_completed)
        return done, total

    def elapsed_seconds(self) -> int:
        """Seconds since the workout started."""
        state = self._require_state()
        return max(0, int((self._clock() - state.start_time).total_seconds()))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_state(self) -> ActiveWorkoutState:
        if self.state is None:
            raise SessionStateError("No workout has been started")
        return self.state

    def _require_active(self) -> ActiveWorkoutState:
        state = self._require_state()
        if self.status != "in_progress":
            raise SessionStateError(f"Workout is {self.status}; continue or discard it first")
        return state

    def _sets(self, exercise_index: int) -> list[CompletedSet]:
        state = self._require_state()
        if not 0 <= exercise_index < len(state.exercises):
            raise SessionStateError(f"No exercise #{exercise_index + 1}")
        return state.exercises[exercise_index].sets

    def _set(self, exercise_index: int, set_index: int) -> CompletedSet:
        sets = self._sets(exercise_index)
        if not 0 <= set_index < len(sets):
            raise SessionStateError(f"Exercise #{exercise_index + 1} has no set #{set_index + 1}")
        return sets[set_index]

    def _touch(self) -> None:
        self._require_state().last_activity = self._clock()
        self._persist()

    def _persist(self) -> None:
        self._store.save_active_state(self._require_state())


_ATTRS: dict[str, str] = {"reps": "reps", "weight": "weight_kg", "rir": "rir"}


def _validate_value(field: str, value: int | float | None) -> int | float | None:
    if field not in _ATTRS:
        raise ValueError(f"Unknown set field: {field!r}")
    if value is None:
        return None
    if value < 0:
        raise ValueError(f"{field} must be non-negative, got {value}")
    if field == "reps":
        return int(value)
    if field == "rir":
        if not RIR_MIN <= value <= RIR_MAX:
            raise ValueError(f"rir must be between {RIR_MIN} and {RIR_MAX}, got {value}")
        return int(value)
    return float(value)
