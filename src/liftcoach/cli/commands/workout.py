"""Workout commands: start, set, done, pain, show, finish, discard, resume."""

import asyncio
import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.adaptation import adapt, compute_readiness
from ...core.errors import (
    DuplicateLogError,
    IncompleteWorkoutError,
    LiftCoachError,
    NoLongerValidError,
)
from ...core.models import (
    ActiveWorkoutState,
    PainReport,
    Program,
    ReadinessData,
    WorkoutFeedback,
)
from ...core.scheduler import scheduled_workout
from ...core.session import SessionTracker
from ...io.history_store import HistoryStore
from ...io.serializers import active_state_to_dict, workout_log_to_dict
from .. import views
from ..app import (
    DataDirOption,
    JsonOption,
    app,
    get_insight_service,
    get_store,
    get_tracker,
    require_setup,
)


def _restore(store: HistoryStore, program: Program) -> SessionTracker:
    """
    Tracker re-attached to the saved workout, if any.

    Raises:
        typer.Exit: If the saved workout's session was removed from the program
    """
    tracker = get_tracker(store)
    try:
        tracker.restore(program)
    except NoLongerValidError as e:
        views.print_warning(str(e))
        views.print_info("The saved workout was discarded.")
        raise typer.Exit(1)
    return tracker


def _active_state(tracker: SessionTracker) -> ActiveWorkoutState:
    if tracker.state is None:
        views.print_error("No workout in progress. Run 'liftcoach start' first.")
        raise typer.Exit(1)
    return tracker.state


def _require_workout(store: HistoryStore) -> SessionTracker:
    _, program = require_setup(store)
    tracker = _restore(store, program)
    _active_state(tracker)
    return tracker


def _show(tracker: SessionTracker) -> None:
    views.print_active_workout(
        _active_state(tracker), tracker.status, tracker.progress(), tracker.elapsed_seconds()
    )


def _readiness(
    sleep: int | None,
    nutrition: int | None,
    stress: int | None,
    soreness: int | None,
) -> ReadinessData | None:
    scores = (sleep, nutrition, stress, soreness)
    if all(s is None for s in scores):
        return None
    if any(s is None for s in scores):
        views.print_error("Readiness needs all of --sleep, --nutrition, --stress and --soreness.")
        raise typer.Exit(1)
    try:
        return compute_readiness(sleep, nutrition, stress, soreness)  # type: ignore[arg-type]
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def start(
    sleep: Annotated[Optional[int], typer.Option("--sleep", help="Sleep quality 1-5")] = None,
    nutrition: Annotated[Optional[int], typer.Option("--nutrition", help="Nutrition 1-5")] = None,
    stress: Annotated[Optional[int], typer.Option("--stress", help="Stress 1-5 (5 = relaxed)")] = None,
    soreness: Annotated[Optional[int], typer.Option("--soreness", help="Soreness 1-5 (5 = fresh)")] = None,
    session_name: Annotated[
        Optional[str],
        typer.Option("--session", "-s", help="Session to train (default: today's scheduled one)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Check in readiness, adapt today's session and start the workout.

    Red readiness (score < 12) drops a set and takes 10% off the load;
    Yellow (12-15) takes 5% off. Warm-up sets are added before the first
    loaded exercise.

      liftcoach start --sleep 4 --nutrition 4 --stress 3 --soreness 4
    """
    store = get_store(data_dir)
    profile, program = require_setup(store)
    readiness = _readiness(sleep, nutrition, stress, soreness)
    tracker = _restore(store, program)
    today = datetime.now().date()
    logs = store.load_logs()

    if any(log.date == today.isoformat() for log in logs):
        views.print_error(f"A workout is already logged for {today.isoformat()}. One workout per day.")
        raise typer.Exit(1)

    if session_name is not None:
        session = program.find_session(session_name)
        if session is None:
            names = ", ".join(s.name for s in program.sessions)
            views.print_error(f"Unknown session '{session_name}'. Choose from: {names}")
            raise typer.Exit(1)
    else:
        result = scheduled_workout(today, program, profile, logs, store.load_overrides())
        if result.kind != "planned" or result.session is None:
            views.print_error("Today is a rest day. Pass --session to train anyway.")
            raise typer.Exit(1)
        session = result.session

    try:
        state = tracker.start(adapt(session, readiness), readiness)
    except LiftCoachError as e:
        views.print_error(str(e))
        views.print_info("Use 'liftcoach resume --continue' or 'liftcoach discard'.")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(active_state_to_dict(state), indent=2))
        return

    if readiness is not None:
        color = {"Green": "green", "Yellow": "yellow", "Red": "red"}[readiness.status]
        views.console.print(
            f"Readiness: [{color}]{readiness.status}[/{color}] (score {readiness.score}/20)"
        )
    views.print_success(f"Started {session.name}")
    _show(tracker)


@app.command("set")
def set_values(
    exercise: Annotated[int, typer.Argument(min=1, help="Exercise number (1-based)")],
    set_number: Annotated[int, typer.Argument(min=1, help="Set number (1-based)")],
    reps: Annotated[Optional[int], typer.Option("--reps", "-r", help="Reps performed")] = None,
    weight: Annotated[Optional[float], typer.Option("--weight", "-w", help="Weight in kg")] = None,
    rir: Annotated[Optional[int], typer.Option("--rir", help="Reps in reserve (0-3)")] = None,
    done: Annotated[bool, typer.Option("--done", help="Also mark the set complete")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Enter reps, weight and RIR for one set.

    Weight entered on set 1 is copied to every later set without a weight;
    other entries are copied to the next set if it is still empty.
    """
    if reps is None and weight is None and rir is None and not done:
        views.print_error("Pass at least one of --reps, --weight, --rir or --done.")
        raise typer.Exit(1)

    store = get_store(data_dir)
    tracker = _require_workout(store)
    ei, si = exercise - 1, set_number - 1

    try:
        for field, value in (("weight", weight), ("reps", reps), ("rir", rir)):
            if value is not None:
                tracker.update_set(ei, si, field, value)  # type: ignore[arg-type]
        if done:
            tracker.complete_as_prescribed(ei, si)
    except (LiftCoachError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _show(tracker)


@app.command()
def done(
    exercise: Annotated[int, typer.Argument(min=1, help="Exercise number (1-based)")],
    set_number: Annotated[int, typer.Argument(min=1, help="Set number (1-based)")],
    undo: Annotated[bool, typer.Option("--undo", help="Mark the set not done")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Mark a set done, filling empty reps and weight from the prescription.
    """
    store = get_store(data_dir)
    tracker = _require_workout(store)
    ei, si = exercise - 1, set_number - 1

    try:
        if undo:
            if _active_state(tracker).exercises[ei].sets[si].is_completed:
                tracker.toggle_set_complete(ei, si)
        else:
            tracker.complete_as_prescribed(ei, si)
    except (LiftCoachError, IndexError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _show(tracker)


@app.command()
def pain(
    location: Annotated[str, typer.Argument(help="Where it hurts, e.g. 'left shoulder'")],
    details: Annotated[Optional[str], typer.Option("--details", help="Free-text details")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Report pain during the workout; it is saved with the finished log.
    """
    store = get_store(data_dir)
    tracker = _require_workout(store)
    try:
        tracker.report_pain(location, details)
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_warning(f"Pain noted: {location}. Stop any exercise that aggravates it.")


@app.command()
def show(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the workout in progress.
    """
    store = get_store(data_dir)
    tracker = _require_workout(store)
    if json_out:
        data = active_state_to_dict(_active_state(tracker))
        data["status"] = tracker.status
        data["can_finish"] = tracker.can_finish()
        print(json.dumps(data, indent=2))
        return
    _show(tracker)


@app.command()
def finish(
    completion: Annotated[
        str,
        typer.Option("--completion", "-c", help="Did you finish the plan? yes | mostly | no"),
    ] = "yes",
    pump: Annotated[Optional[int], typer.Option("--pump", help="Pump quality 1-5")] = None,
    pain_location: Annotated[
        Optional[str],
        typer.Option("--pain-location", help="Pain location, if any"),
    ] = None,
    pain_details: Annotated[Optional[str], typer.Option("--pain-details")] = None,
    coach: Annotated[
        bool,
        typer.Option("--coach/--no-coach", help="Ask the AI coach for feedback"),
    ] = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Finish the workout and save it to history.

    Every set needs reps (and weight for loaded exercises) first.
    """
    store = get_store(data_dir)
    tracker = _require_workout(store)

    try:
        feedback = WorkoutFeedback(
            completion=completion,  # type: ignore[arg-type]
            pain=PainReport(
                has_pain=pain_location is not None,
                location=pain_location,
                details=pain_details,
            ),
            pump_quality=pump,
        )
        log = tracker.finish(feedback)
    except IncompleteWorkoutError as e:
        views.print_error(str(e))
        views.print_info(f"Fill in exercise #{e.exercise_index + 1} with 'liftcoach set' or 'liftcoach done'.")
        raise typer.Exit(1)
    except DuplicateLogError as e:
        views.print_error(str(e))
        views.print_info("Run 'liftcoach discard' to drop this workout.")
        raise typer.Exit(1)
    except (LiftCoachError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    text = None
    if coach:
        text = asyncio.run(get_insight_service(store).get_insight("coach_feedback"))

    if json_out:
        data = workout_log_to_dict(log)
        if text is not None:
            data["coach_feedback"] = text
        print(json.dumps(data, indent=2))
        return

    views.print_success("Workout saved.")
    views.print_log_summary(log)
    if text is not None:
        views.console.print()
        views.console.print(text)


@app.command()
def discard(
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Throw away the workout in progress without saving it.
    """
    store = get_store(data_dir)
    tracker = _require_workout(store)
    name = _active_state(tracker).session_name

    if not force and not views.confirm_action(f"Discard {name}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    tracker.discard()
    views.print_success(f"Discarded {name}")


@app.command()
def resume(
    continue_: Annotated[
        bool,
        typer.Option("--continue", help="Continue a stale workout"),
    ] = False,
    discard_: Annotated[
        bool,
        typer.Option("--discard", help="Discard a stale workout"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Check the saved workout; a stale one (idle over an hour) must be continued or discarded.
    """
    if continue_ and discard_:
        views.print_error("Choose either --continue or --discard.")
        raise typer.Exit(1)

    store = get_store(data_dir)
    tracker = _require_workout(store)

    if tracker.status == "stale":
        if continue_:
            tracker.continue_stale()
            views.print_success("Workout continued.")
        elif discard_:
            tracker.discard()
            views.print_success("Stale workout discarded.")
            return
        else:
            views.print_warning("This workout has been idle for over an hour.")
            views.print_info("Run 'liftcoach resume --continue' or 'liftcoach resume --discard'.")
    elif discard_:
        tracker.discard()
        views.print_success("Workout discarded.")
        return

    _show(tracker)
