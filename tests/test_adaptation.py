"""
Unit tests for readiness classification and session auto-regulation.

Values are hand-computed:
    Red    -> sets max(2, sets - 1), weight x 0.90, half-up to 1 kg
    Yellow -> weight x 0.95, half-up to 1 kg
    Warm-ups from the adjusted first exercise, rounded to 2.5 kg
"""

import pytest

from liftcoach.core.adaptation import (
    adapt,
    adjust_exercise,
    classify_readiness,
    compute_readiness,
    generate_warmup_sets,
    round_half_up,
)
from liftcoach.core.models import Exercise, ReadinessData, Session

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _exercise(name: str = "Back Squat", sets: int = 4, weight: float | None = 100.0, **kw) -> Exercise:
    return Exercise(name=name, sets=sets, reps="5", weight_kg=weight, **kw)


def _readiness(status: str) -> ReadinessData:
    scores = {"Green": (5, 5, 4, 4), "Yellow": (4, 3, 3, 4), "Red": (2, 3, 2, 3)}[status]
    return ReadinessData(*scores, status=status)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestReadiness:
    @pytest.mark.parametrize(
        "score,expected",
        [(4, "Red"), (11, "Red"), (12, "Yellow"), (15, "Yellow"), (16, "Green"), (20, "Green")],
    )
    def test_score_bands(self, score, expected):
        assert classify_readiness(score) == expected

    def test_compute_readiness(self):
        r = compute_readiness(sleep=2, nutrition=3, stress=2, soreness=3)
        # 2 + 3 + 2 + 3 = 10 < 12
        assert r.status == "Red"
        assert r.score == 10

    def test_score_out_of_range(self):
        with pytest.raises(ValueError):
            compute_readiness(sleep=6, nutrition=3, stress=3, soreness=3)


class TestRounding:
    def test_half_rounds_up(self):
        assert round_half_up(94.5) == 95.0
        assert round_half_up(47.5) == 48.0

    def test_step(self):
        # 63 / 2.5 = 25.2 -> 25 -> 62.5
        assert round_half_up(63.0, 2.5) == 62.5
        # 76.5 / 2.5 = 30.6 -> 31 -> 77.5
        assert round_half_up(76.5, 2.5) == 77.5


class TestAdjustExercise:
    def test_red_drops_set_and_ten_percent(self):
        adjusted = adjust_exercise(_exercise(sets=4, weight=100.0), "Red")
        assert adjusted.sets == 3
        assert adjusted.weight_kg == 90.0

    def test_red_never_below_two_sets(self):
        assert adjust_exercise(_exercise(sets=2), "Red").sets == 2

    def test_red_never_increases_sets(self):
        assert adjust_exercise(_exercise(sets=1), "Red").sets == 1

    def test_red_weight_rounds_half_up(self):
        # 105 x 0.9 = 94.5 -> 95
        assert adjust_exercise(_exercise(weight=105.0), "Red").weight_kg == 95.0

    def test_yellow_five_percent(self):
        adjusted = adjust_exercise(_exercise(sets=4, weight=100.0), "Yellow")
        assert adjusted.sets == 4
        assert adjusted.weight_kg == 95.0

    def test_green_unchanged(self):
        ex = _exercise()
        assert adjust_exercise(ex, "Green") is ex

    def test_unloaded_exercise_unchanged(self):
        ex = _exercise(name="Pull-up", weight=None, movement_type="bodyweight")
        assert adjust_exercise(ex, "Red") is ex


class TestWarmups:
    def test_light_weight_no_warmups(self):
        assert generate_warmup_sets(_exercise(weight=20.0)) == []

    def test_two_warmups_up_to_sixty(self):
        warmups = generate_warmup_sets(_exercise(weight=60.0))
        # 60 x 0.5 = 30, 60 x 0.7 = 42 -> 42.5
        assert [(w.weight_kg, w.reps) for w in warmups] == [(30.0, "8"), (42.5, "5")]

    def test_three_warmups_above_sixty(self):
        warmups = generate_warmup_sets(_exercise(weight=100.0))
        assert [(w.weight_kg, w.reps) for w in warmups] == [(50.0, "8"), (70.0, "5"), (85.0, "3")]
        assert all(w.is_warmup and w.sets == 1 for w in warmups)
        assert warmups[0].name == "Warm-up 50%: Back Squat"


class TestAdapt:
    def test_red_session(self):
        session = Session(name="A", exercises=[_exercise(sets=4, weight=100.0), _exercise("Row", 3, 60.0)])

        adapted = adapt(session, _readiness("Red"))

        working = adapted.working_exercises
        assert [(e.name, e.sets, e.weight_kg) for e in working] == [
            ("Back Squat", 3, 90.0),
            ("Row", 2, 54.0),
        ]
        # Warm-ups from 90 kg: 45, 63 -> 62.5, 76.5 -> 77.5
        warmups = [e for e in adapted.exercises if e.is_warmup]
        assert [w.weight_kg for w in warmups] == [45.0, 62.5, 77.5]
        assert adapted.exercises[:3] == warmups

    def test_input_not_mutated(self):
        session = Session(name="A", exercises=[_exercise()])
        adapt(session, _readiness("Red"))
        assert session.exercises[0].weight_kg == 100.0
        assert len(session.exercises) == 1

    def test_readapting_does_not_stack_warmups(self):
        session = Session(name="A", exercises=[_exercise()])
        once = adapt(session, _readiness("Green"))
        twice = adapt(once, _readiness("Green"))
        assert twice == once

    def test_readapting_red_does_not_compound(self):
        session = Session(name="A", exercises=[_exercise(sets=4, weight=100.0)])

        once = adapt(session, _readiness("Red"))
        twice = adapt(once, _readiness("Red"))

        assert twice == once
        assert [(e.sets, e.weight_kg) for e in twice.working_exercises] == [(3, 90.0)]

    def test_readapting_with_new_status_starts_from_prescription(self):
        session = Session(name="A", exercises=[_exercise(sets=4, weight=100.0)])

        red = adapt(session, _readiness("Red"))
        yellow = adapt(red, _readiness("Yellow"))
        green = adapt(red, _readiness("Green"))

        assert [(e.sets, e.weight_kg) for e in yellow.working_exercises] == [(4, 95.0)]
        assert green.working_exercises == session.exercises

    def test_adjusted_exercise_keeps_prescription(self):
        adjusted = adjust_exercise(_exercise(sets=4, weight=100.0), "Red")
        assert (adjusted.prescribed_sets, adjusted.prescribed_weight_kg) == (4, 100.0)
        assert adjusted.prescription() == _exercise(sets=4, weight=100.0)

    def test_no_readiness_only_adds_warmups(self):
        session = Session(name="A", exercises=[_exercise()])
        adapted = adapt(session, None)
        assert adapted.working_exercises == session.exercises
        assert len(adapted.exercises) == 4

    def test_bodyweight_first_exercise_gets_no_warmups(self):
        session = Session(
            name="A",
            exercises=[_exercise("Pull-up", weight=None, movement_type="bodyweight"), _exercise()],
        )
        adapted = adapt(session, _readiness("Yellow"))
        assert not any(e.is_warmup for e in adapted.exercises)
        assert adapted.exercises[1].weight_kg == 95.0
