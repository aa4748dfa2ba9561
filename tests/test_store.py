"""
Tests for persistence: key-value backends, HistoryStore, versioned caches
and settings loading.
"""

from datetime import datetime, timedelta

import pytest

from liftcoach.core.engine.config_loader import load_settings
from liftcoach.core.errors import DuplicateLogError
from liftcoach.core.models import (
    ActiveWorkoutState,
    CompletedExercise,
    CompletedSet,
    Exercise,
    ImbalanceReport,
    PainReport,
    ReadinessData,
    WorkoutFeedback,
    WorkoutLog,
)
from liftcoach.io.cache import VersionedCache, imbalance_cache, insight_cache
from liftcoach.io.history_store import (
    ACTIVE_STATE_KEY,
    IMBALANCE_KEY,
    INSIGHT_KEY,
    LOGS_KEY,
    OVERRIDES_KEY,
    HistoryStore,
)
from liftcoach.io.kv_store import CorruptEntryError, JsonFileStore, MemoryStore
from liftcoach.io.serializers import (
    ValidationError,
    dict_to_exercise,
    dict_to_workout_log,
    exercise_to_dict,
    workout_log_to_dict,
)

NOW = datetime(2026, 3, 2, 9, 0)


def _log(day: str = "2026-03-02", session: str = "Upper A") -> WorkoutLog:
    bench = Exercise(name="Bench Press", sets=2, reps="8-10", weight_kg=60.0)
    return WorkoutLog(
        session_name=session,
        date=day,
        start_time=datetime.fromisoformat(f"{day}T18:00:00"),
        duration_seconds=2700,
        exercises=[
            CompletedExercise(
                bench,
                [
                    CompletedSet(reps=10, weight_kg=60.0, rir=2, is_completed=True, target_reps="8-10", target_weight_kg=60.0),
                    CompletedSet(reps=8, weight_kg=60.0, rir=1, is_completed=True, target_reps="8-10", target_weight_kg=60.0),
                ],
            )
        ],
        readiness=ReadinessData(4, 4, 3, 3, "Yellow"),
        feedback=WorkoutFeedback(completion="mostly", pain=PainReport(True, "elbow", None), pump_quality=4),
    )


def _report() -> ImbalanceReport:
    return ImbalanceReport(
        category="push_pull",
        severity="severe",
        ratio=3.0,
        description="Push volume is 3.0x pull volume (12,000 vs 4,000 kg)",
        recommendation="Add rows.",
        exercises=["Dumbbell Fly", "Lat Pulldown"],
    )


class _Clock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ---------------------------------------------------------------------------
# Key-value backends
# ---------------------------------------------------------------------------


class TestJsonFileStore:
    def test_set_get_remove(self, tmp_path):
        store = JsonFileStore(tmp_path / "data")

        store.set("profile", {"age": 30})

        assert store.get("profile") == {"age": 30}
        assert (tmp_path / "data" / "profile.json").exists()
        store.remove("profile")
        assert store.get("profile") is None

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("workoutLogs", [1, 2, 3])
        store.set("workoutLogs", [1, 2, 3, 4])
        assert sorted(p.name for p in tmp_path.iterdir()) == ["workoutLogs.json"]

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "profile.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptEntryError) as exc:
            JsonFileStore(tmp_path).get("profile")
        assert exc.value.key == "profile"

    def test_remove_missing_is_noop(self, tmp_path):
        JsonFileStore(tmp_path).remove("nothing")


class TestMemoryStore:
    def test_values_are_copied(self):
        store = MemoryStore()
        value = {"sessions": []}
        store.set("program", value)
        value["sessions"].append("A")
        assert store.get("program") == {"sessions": []}

    def test_initial_values(self):
        store = MemoryStore({"a": 1})
        assert store.get("a") == 1
        assert store.keys() == ["a"]


# ---------------------------------------------------------------------------
# HistoryStore
# ---------------------------------------------------------------------------


class TestHistoryStore:
    def test_log_round_trip(self):
        log = _log()
        assert dict_to_workout_log(workout_log_to_dict(log)) == log

    def test_logs_sorted_by_date(self):
        store = HistoryStore(MemoryStore())
        store.append_log(_log("2026-03-04"))
        store.append_log(_log("2026-03-02"))
        assert [log.date for log in store.load_logs()] == ["2026-03-02", "2026-03-04"]
        assert store.log_count() == 2

    def test_corrupt_logs_are_an_error(self):
        kv = MemoryStore()
        kv.set_raw(LOGS_KEY, "[{broken")
        with pytest.raises(ValidationError):
            HistoryStore(kv).load_logs()

    def test_invalid_log_entry_is_an_error(self):
        kv = MemoryStore({LOGS_KEY: [{"date": "03/02/2026"}]})
        with pytest.raises(ValidationError):
            HistoryStore(kv).load_logs()

    def test_corrupt_overrides_are_cleared(self):
        kv = MemoryStore({OVERRIDES_KEY: {"2026-03-02": "Upper A"}})
        store = HistoryStore(kv)

        assert store.load_overrides() == {}
        assert kv.get(OVERRIDES_KEY) is None

    def test_overrides_round_trip(self):
        store = HistoryStore(MemoryStore())
        store.save_overrides({"2026-03-06": None, "2026-03-04": 1})
        assert store.load_overrides() == {"2026-03-04": 1, "2026-03-06": None}

    def test_invalid_profile_loads_as_none(self):
        store = HistoryStore(MemoryStore({"profile": {"gender": "robot"}}))
        assert store.load_profile() is None
        assert not store.has_profile()

    def test_import_skips_known_dates(self):
        store = HistoryStore(MemoryStore())
        store.append_log(_log("2026-03-02"))

        added = store.import_logs([_log("2026-03-02", "Other"), _log("2026-03-04"), _log("2026-03-04")])

        assert added == 1
        assert [log.session_name for log in store.load_logs()] == ["Upper A", "Upper A"]

    def test_active_state_with_utc_offset_is_cleared(self):
        kv = MemoryStore()
        store = HistoryStore(kv)
        start = datetime(2026, 3, 2, 18, 0)
        store.save_active_state(ActiveWorkoutState("Upper A", _log().exercises, start, start))
        assert store.load_active_state() is not None

        kv.set(ACTIVE_STATE_KEY, {**kv.get(ACTIVE_STATE_KEY), "last_activity": "2026-03-02T18:10:00+01:00"})

        assert store.load_active_state() is None
        assert kv.get(ACTIVE_STATE_KEY) is None

    def test_adjusted_exercise_survives_storage(self):
        adjusted = Exercise(
            name="Back Squat", sets=3, reps="5", weight_kg=90.0, prescribed_sets=4, prescribed_weight_kg=100.0
        )
        assert dict_to_exercise(exercise_to_dict(adjusted)) == adjusted
        assert "prescribed_sets" not in exercise_to_dict(adjusted.prescription())

    def test_append_rejects_second_log_on_same_day(self):
        store = HistoryStore(MemoryStore())
        store.append_log(_log("2026-03-02"))

        with pytest.raises(DuplicateLogError):
            store.append_log(_log("2026-03-02", "Lower B"))

        assert [log.session_name for log in store.load_logs()] == ["Upper A"]

    def test_persists_across_instances(self, tmp_path):
        HistoryStore.at(tmp_path).append_log(_log())
        assert HistoryStore.at(tmp_path).load_logs() == [_log()]


# ---------------------------------------------------------------------------
# Versioned cache
# ---------------------------------------------------------------------------


class TestVersionedCache:
    def test_hit(self):
        store = HistoryStore(MemoryStore())
        cache = imbalance_cache(store, clock=_Clock())
        cache.put([_report()], log_count=5)
        assert cache.lookup(5) == [_report()]

    def test_new_log_invalidates(self):
        store = HistoryStore(MemoryStore())
        cache = imbalance_cache(store, clock=_Clock())
        cache.put([_report()], log_count=5)
        assert cache.lookup(6) is None

    def test_version_bump_invalidates(self):
        store = HistoryStore(MemoryStore())
        clock = _Clock()
        imbalance_cache(store, clock=clock).put([_report()], log_count=5)

        newer = VersionedCache(
            store, IMBALANCE_KEY, ttl_seconds=3600, version=99, field="imbalances", clock=clock
        )

        assert newer.lookup(5) is None

    def test_expired_entry(self):
        store = HistoryStore(MemoryStore())
        clock = _Clock()
        cache = insight_cache(store, ttl_seconds=3600, clock=clock)
        cache.put("Sleep more.", log_count=3)

        clock.now = NOW + timedelta(minutes=59)
        assert cache.lookup(3) == "Sleep more."
        clock.now = NOW + timedelta(minutes=61)
        assert cache.lookup(3) is None

    def test_stored_shape(self):
        kv = MemoryStore()
        insight_cache(HistoryStore(kv), clock=_Clock()).put("Rest well.", log_count=2)
        assert kv.get(INSIGHT_KEY) == {
            "version": 1,
            "timestamp": "2026-03-02T09:00:00",
            "logCount": 2,
            "text": "Rest well.",
        }

    def test_malformed_entry_is_a_miss_and_cleared(self):
        kv = MemoryStore({INSIGHT_KEY: {"version": 1, "text": "x"}})
        cache = insight_cache(HistoryStore(kv), clock=_Clock())
        assert cache.lookup(0) is None
        assert kv.get(INSIGHT_KEY) is None

    def test_timestamp_with_utc_offset_is_a_miss(self):
        kv = MemoryStore(
            {INSIGHT_KEY: {"version": 1, "timestamp": "2026-03-02T08:00:00+00:00", "logCount": 0, "text": "x"}}
        )
        cache = insight_cache(HistoryStore(kv), clock=_Clock())

        assert cache.lookup(0) is None
        assert kv.get(INSIGHT_KEY) is None

    def test_get_or_compute_calls_once(self):
        store = HistoryStore(MemoryStore())
        cache = imbalance_cache(store, clock=_Clock())
        calls = []

        def compute():
            calls.append(1)
            return [_report()]

        cache.get_or_compute(5, compute)
        cache.get_or_compute(5, compute)

        assert len(calls) == 1

    def test_invalidate(self):
        kv = MemoryStore()
        cache = imbalance_cache(HistoryStore(kv), clock=_Clock())
        cache.put([_report()], log_count=5)

        cache.invalidate()

        assert kv.get(IMBALANCE_KEY) is None
        assert cache.lookup(5) is None

    def test_empty_result_is_cached(self):
        store = HistoryStore(MemoryStore())
        cache = imbalance_cache(store, clock=_Clock())
        cache.put([], log_count=2)
        assert cache.lookup(2) == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults_from_bundled_yaml(self, tmp_path):
        settings = load_settings(user_path=tmp_path / "missing.yaml", environ={})
        assert settings.insight_url is None
        assert settings.insight_ttl_seconds == 6 * 3600
        assert settings.stale_threshold_seconds == 3600

    def test_user_file_and_environment(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text(
            "workout:\n  stale_threshold_minutes: 30\ninsight:\n  base_url: http://file.example\n",
            encoding="utf-8",
        )
        env = {"LIFTCOACH_DATA_DIR": str(tmp_path / "data"), "LIFTCOACH_INSIGHT_URL": "http://env.example"}

        settings = load_settings(user_path=user, environ=env)

        assert settings.data_dir == tmp_path / "data"
        assert settings.insight_url == "http://env.example"
        assert settings.stale_threshold_seconds == 1800
