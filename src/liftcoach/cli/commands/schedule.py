"""Schedule commands: today, week, override, clear-override, swap."""

import json
from datetime import timedelta
from typing import Annotated, Any, Optional

import typer

from ...core.analytics import calculate_streaks
from ...core.config import UPCOMING_DAYS_DEFAULT
from ...core.errors import LiftCoachError
from ...core.models import Program, ScheduleResult
from ...core.scheduler import (
    clear_override,
    next_scheduled_day,
    scheduled_workout,
    set_override,
    swap_dates,
    upcoming_schedule,
)
from ...io.serializers import session_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store, parse_date_option, require_setup


def _result_to_json(result: ScheduleResult) -> dict[str, Any]:
    data: dict[str, Any] = {"date": result.date, "kind": result.kind}
    if result.session is not None:
        data["session"] = session_to_dict(result.session)
        data["rotation_index"] = result.rotation_index
    if result.log is not None:
        data["session_name"] = result.log.session_name
    return data


def resolve_session_index(program: Program, value: str) -> int | None:
    """
    Turn a CLI session argument into a rotation index.

    Accepts "rest" (None), a 1-based number or a session name.

    Raises:
        typer.Exit: If no session matches
    """
    if value.strip().lower() == "rest":
        return None
    if value.isdigit():
        return int(value) - 1
    index = program.index_of(value)
    if index is None:
        names = ", ".join(s.name for s in program.sessions)
        views.print_error(f"Unknown session '{value}'. Choose from: {names}, rest")
        raise typer.Exit(1)
    return index


@app.command()
def today(
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Date to check (YYYY-MM-DD, default: today)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the workout scheduled for today (or --date) and the current streak.
    """
    day = parse_date_option(date)
    store = get_store(data_dir)
    profile, program = require_setup(store)

    try:
        logs = store.load_logs()
        result = scheduled_workout(day, program, profile, logs, store.load_overrides())
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    streak = calculate_streaks(logs, profile.preferred_days, day)

    if json_out:
        data = _result_to_json(result)
        data["streak"] = {"current": streak.current, "best": streak.best, "unit": streak.granularity}
        print(json.dumps(data, indent=2))
        return

    views.print_scheduled_day(result, streak)
    if result.kind == "rest":
        upcoming = next_scheduled_day(day + timedelta(days=1), profile.preferred_days)
        if upcoming is not None:
            next_day, days_until = upcoming
            views.print_info(f"Next training day: {next_day.isoformat()} (in {days_until + 1} days)")


@app.command()
def week(
    start: Annotated[
        Optional[str],
        typer.Option("--start", help="First day (YYYY-MM-DD, default: today)"),
    ] = None,
    days: Annotated[
        int,
        typer.Option("--days", "-n", help="Number of days to show"),
    ] = UPCOMING_DAYS_DEFAULT,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the projected schedule, assuming every planned workout is done.
    """
    first = parse_date_option(start)
    store = get_store(data_dir)
    profile, program = require_setup(store)

    try:
        results = upcoming_schedule(
            first, days, program, profile, store.load_logs(), store.load_overrides()
        )
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({"days": [_result_to_json(r) for r in results]}, indent=2))
        return

    views.print_week(results)


@app.command()
def override(
    date: Annotated[str, typer.Argument(help="Date to pin (YYYY-MM-DD)")],
    session: Annotated[str, typer.Argument(help="Session name, 1-based number, or 'rest'")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Pin a date to a specific session or make it a rest day.
    """
    day = parse_date_option(date)
    store = get_store(data_dir)
    _, program = require_setup(store)
    index = resolve_session_index(program, session)

    try:
        updated = set_override(store.load_overrides(), day, index, program, store.load_logs())
    except (LiftCoachError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.save_overrides(updated)
    label = "rest" if index is None else program.sessions[index].name
    views.print_success(f"{day.isoformat()} set to {label}")


@app.command("clear-override")
def clear_override_cmd(
    date: Annotated[str, typer.Argument(help="Date to reset (YYYY-MM-DD)")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove a date's override so the rotation decides again.
    """
    day = parse_date_option(date)
    store = get_store(data_dir)
    overrides = store.load_overrides()
    if day.isoformat() not in overrides:
        views.print_info(f"No override on {day.isoformat()}")
        return
    store.save_overrides(clear_override(overrides, day))
    views.print_success(f"Override on {day.isoformat()} removed")


@app.command()
def swap(
    first: Annotated[str, typer.Argument(help="First date (YYYY-MM-DD)")],
    second: Annotated[str, typer.Argument(help="Second date (YYYY-MM-DD)")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Exchange the workouts scheduled on two dates.
    """
    day_a = parse_date_option(first)
    day_b = parse_date_option(second)
    store = get_store(data_dir)
    profile, program = require_setup(store)

    try:
        updated = swap_dates(
            day_a, day_b, program, profile, store.load_logs(), store.load_overrides()
        )
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.save_overrides(updated)

    def _label(index: int | None) -> str:
        return "rest" if index is None else program.sessions[index].name

    views.print_success(
        f"{day_a.isoformat()}: {_label(updated[day_a.isoformat()])}, "
        f"{day_b.isoformat()}: {_label(updated[day_b.isoformat()])}"
    )
