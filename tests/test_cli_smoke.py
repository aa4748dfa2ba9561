"""
Smoke tests for the liftcoach CLI.

Tests basic functionality:
- App runs and shows help
- Profile and program are saved, history imports
- Schedule, overrides and projections
- A full workout: start, set, done, finish
- Analysis commands and the offline insight fallback
"""

import json
from datetime import date
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from liftcoach.cli.main import app
from liftcoach.core.config import INSIGHT_FALLBACKS

runner = CliRunner()

PROFILE_YAML = """\
gender: male
age: 34
weight_kg: 80
height_cm: 180
experience: intermediate
preferred_days: [1, 3, 5]
"""

PROGRAM_YAML = """\
name: Upper/Lower
sessions:
  - name: Upper A
    exercises:
      - {name: Bench Press, sets: 2, reps: "8", weight_kg: 20}
      - {name: Plank, sets: 1, reps: "30s", movement_type: isometric}
  - name: Lower B
    exercises:
      - {name: Back Squat, sets: 3, reps: "5", weight_kg: 100}
"""

IMPORTED_LOG = {
    "session_name": "Upper A",
    "date": "2026-03-02",
    "start_time": "2026-03-02T18:00:00",
    "duration_seconds": 3000,
    "readiness": None,
    "feedback": None,
    "exercises": [
        {
            "name": "Bench Press",
            "sets": 1,
            "reps": "5",
            "weight_kg": 100.0,
            "completed_sets": [{"reps": 5, "weight_kg": 100.0, "is_completed": True}],
        }
    ],
}


@pytest.fixture
def data_dir(monkeypatch):
    """Temporary data directory with user settings and env overrides isolated."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        monkeypatch.setenv("HOME", str(root))
        for var in ("LIFTCOACH_DATA_DIR", "LIFTCOACH_INSIGHT_URL", "LIFTCOACH_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        yield root / "data"


@pytest.fixture
def setup_dir(data_dir):
    """Data directory with a saved profile and program."""
    profile = data_dir.parent / "profile.yaml"
    program = data_dir.parent / "program.yaml"
    profile.write_text(PROFILE_YAML, encoding="utf-8")
    program.write_text(PROGRAM_YAML, encoding="utf-8")
    result = runner.invoke(app, [
        "init", "--profile", str(profile), "--program", str(program), "-d", str(data_dir),
    ])
    assert result.exit_code == 0, result.output
    return data_dir


def _json(args: list[str]) -> dict:
    result = runner.invoke(app, args + ["--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestSetup:
    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "strength" in result.output.lower()

    def test_init_saves_profile_and_program(self, setup_dir):
        assert (setup_dir / "profile.json").exists()
        assert (setup_dir / "program.json").exists()

    def test_init_without_files_fails(self, data_dir):
        result = runner.invoke(app, ["init", "-d", str(data_dir)])
        assert result.exit_code == 1

    def test_program_without_sessions_rejected(self, data_dir):
        program = data_dir.parent / "empty.yaml"
        program.write_text("name: Empty\nsessions: []\n", encoding="utf-8")
        result = runner.invoke(app, ["init", "--program", str(program), "-d", str(data_dir)])
        assert result.exit_code == 1

    def test_commands_need_setup(self, data_dir):
        result = runner.invoke(app, ["today", "-d", str(data_dir)])
        assert result.exit_code == 1
        assert "init" in result.output

    def test_import_logs(self, setup_dir):
        logs_file = setup_dir.parent / "logs.json"
        logs_file.write_text(json.dumps({"workoutLogs": [IMPORTED_LOG]}), encoding="utf-8")

        summary = _json(["init", "--import-logs", str(logs_file), "-d", str(setup_dir)])
        again = _json(["init", "--import-logs", str(logs_file), "-d", str(setup_dir)])

        assert summary["imported_logs"] == 1
        assert again["imported_logs"] == 0


class TestSchedule:
    def test_today_cold_start(self, setup_dir):
        data = _json(["today", "--date", "2026-03-03", "-d", str(setup_dir)])
        assert data["kind"] == "planned"
        assert data["session"]["name"] == "Upper A"
        assert data["streak"]["current"] == 0

    def test_week_projection(self, setup_dir):
        data = _json(["week", "--start", "2026-03-02", "--days", "3", "-d", str(setup_dir)])
        kinds = [(d["kind"], d.get("session", {}).get("name")) for d in data["days"]]
        assert kinds == [("planned", "Upper A"), ("rest", None), ("planned", "Lower B")]

    def test_override_and_clear(self, setup_dir):
        result = runner.invoke(app, ["override", "2026-03-02", "Lower B", "-d", str(setup_dir)])
        assert result.exit_code == 0
        assert _json(["today", "--date", "2026-03-02", "-d", str(setup_dir)])["session"]["name"] == "Lower B"

        result = runner.invoke(app, ["clear-override", "2026-03-02", "-d", str(setup_dir)])
        assert result.exit_code == 0
        assert _json(["today", "--date", "2026-03-02", "-d", str(setup_dir)])["session"]["name"] == "Upper A"

    def test_override_unknown_session(self, setup_dir):
        result = runner.invoke(app, ["override", "2026-03-02", "Arms", "-d", str(setup_dir)])
        assert result.exit_code == 1

    def test_swap(self, setup_dir):
        result = runner.invoke(app, ["swap", "2026-03-04", "2026-03-05", "-d", str(setup_dir)])
        assert result.exit_code == 0
        # No logs yet: every day is a training day until the first workout
        assert _json(["today", "--date", "2026-03-05", "-d", str(setup_dir)])["kind"] == "planned"


class TestWorkout:
    def test_full_workout(self, setup_dir):
        d = ["-d", str(setup_dir)]
        state = _json(["start", "--session", "Upper A"] + d)
        # 20 kg is too light for warm-ups
        assert [ex["name"] for ex in state["exercises"]] == ["Bench Press", "Plank"]

        result = runner.invoke(app, ["set", "1", "1", "--reps", "8", "--weight", "22.5"] + d)
        assert result.exit_code == 0, result.output
        shown = _json(["show"] + d)
        second = shown["exercises"][0]["completed_sets"][1]
        assert (second["reps"], second["weight_kg"]) == (8, 22.5)
        assert shown["can_finish"] is False

        for args in (["done", "1", "1"], ["done", "1", "2"], ["done", "2", "1"]):
            result = runner.invoke(app, args + d)
            assert result.exit_code == 0, result.output

        log = _json(["finish", "--completion", "mostly", "--pump", "4"] + d)
        assert log["session_name"] == "Upper A"
        assert log["feedback"]["completion"] == "mostly"

        history = _json(["history"] + d)
        assert len(history["workoutLogs"]) == 1

        result = runner.invoke(app, ["show"] + d)
        assert result.exit_code == 1

    def test_red_readiness_adapts_session(self, setup_dir):
        state = _json([
            "start", "--session", "Lower B",
            "--sleep", "2", "--nutrition", "2", "--stress", "2", "--soreness", "2",
            "-d", str(setup_dir),
        ])

        assert state["readiness"]["status"] == "Red"
        working = [ex for ex in state["exercises"] if not ex["is_warmup"]]
        # 3 sets -> 2, 100 kg -> 90 kg
        assert (working[0]["sets"], working[0]["weight_kg"]) == (2, 90.0)
        assert len(working[0]["completed_sets"]) == 2

    def test_start_refused_when_today_is_logged(self, setup_dir):
        d = ["-d", str(setup_dir)]
        today = date.today().isoformat()
        log = {**IMPORTED_LOG, "date": today, "start_time": f"{today}T07:00:00"}
        logs_file = setup_dir.parent / "today.json"
        logs_file.write_text(json.dumps({"workoutLogs": [log]}), encoding="utf-8")
        runner.invoke(app, ["init", "--import-logs", str(logs_file)] + d)

        result = runner.invoke(app, ["start", "--session", "Lower B"] + d)

        assert result.exit_code == 1
        assert "already logged" in result.output
        assert len(_json(["history"] + d)["workoutLogs"]) == 1

    def test_partial_readiness_rejected(self, setup_dir):
        result = runner.invoke(app, ["start", "--session", "Upper A", "--sleep", "3", "-d", str(setup_dir)])
        assert result.exit_code == 1

    def test_finish_incomplete_workout(self, setup_dir):
        d = ["-d", str(setup_dir)]
        runner.invoke(app, ["start", "--session", "Upper A"] + d)

        result = runner.invoke(app, ["finish"] + d)

        assert result.exit_code == 1
        assert "Bench Press" in result.output

    def test_second_start_rejected(self, setup_dir):
        d = ["-d", str(setup_dir)]
        runner.invoke(app, ["start", "--session", "Upper A"] + d)
        result = runner.invoke(app, ["start", "--session", "Lower B"] + d)
        assert result.exit_code == 1

    def test_undo_done_set(self, setup_dir):
        d = ["-d", str(setup_dir)]
        runner.invoke(app, ["start", "--session", "Upper A"] + d)
        runner.invoke(app, ["done", "1", "1"] + d)

        result = runner.invoke(app, ["done", "1", "1", "--undo"] + d)

        assert result.exit_code == 0, result.output
        assert _json(["show"] + d)["exercises"][0]["completed_sets"][0]["is_completed"] is False

    def test_discard(self, setup_dir):
        d = ["-d", str(setup_dir)]
        runner.invoke(app, ["start", "--session", "Upper A"] + d)
        result = runner.invoke(app, ["discard", "--force"] + d)
        assert result.exit_code == 0
        assert _json(["history"] + d)["workoutLogs"] == []


class TestAnalysis:
    @pytest.fixture
    def with_history(self, setup_dir):
        logs = []
        for day in ("2026-03-02", "2026-03-04", "2026-03-06", "2026-03-09", "2026-03-11"):
            log = json.loads(json.dumps(IMPORTED_LOG))
            log["date"] = day
            log["start_time"] = f"{day}T18:00:00"
            logs.append(log)
        logs_file = setup_dir.parent / "logs.json"
        logs_file.write_text(json.dumps({"workoutLogs": logs}), encoding="utf-8")
        runner.invoke(app, ["init", "--import-logs", str(logs_file), "-d", str(setup_dir)])
        return setup_dir

    def test_stats(self, with_history):
        data = _json(["stats", "-d", str(with_history)])
        assert data["workouts"] == 5
        # 5 x (5 x 100)
        assert data["total_volume_kg"] == 2500.0
        assert data["personal_records"][0]["exercise"] == "Bench Press"

    def test_e1rm(self, with_history):
        data = _json(["e1rm", "bench press", "-d", str(with_history)])
        assert len(data["data_points"]) == 5
        assert data["data_points"][0]["e1rm"] == 116.7

    def test_e1rm_plot(self, with_history):
        result = runner.invoke(app, ["e1rm", "Bench Press", "-d", str(with_history)])
        assert result.exit_code == 0
        assert "e1RM" in result.output

    def test_strength(self, with_history):
        data = _json(["strength", "-d", str(with_history)])
        assert data["lifts"][0]["lift"] == "bench"
        assert any(r["category"] == "push_pull" for r in data["imbalances"])
        assert (with_history / "imbalanceAnalysis.json").exists()

    def test_strength_table(self, with_history):
        result = runner.invoke(app, ["strength", "-d", str(with_history)])
        assert result.exit_code == 0

    def test_insight_falls_back_offline(self, with_history):
        data = _json(["insight", "-d", str(with_history)])
        assert data["text"] == INSIGHT_FALLBACKS["daily_insight"]

    def test_insight_unknown_intent(self, setup_dir):
        result = runner.invoke(app, ["insight", "--intent", "horoscope", "-d", str(setup_dir)])
        assert result.exit_code == 1

    def test_history_table(self, with_history):
        result = runner.invoke(app, ["history", "-n", "2", "-d", str(with_history)])
        assert result.exit_code == 0
