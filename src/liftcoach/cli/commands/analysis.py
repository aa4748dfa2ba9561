"""Analysis commands: history, stats, e1rm, strength, insight."""

import asyncio
import json
from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.analytics import calculate_streaks, generate_strength_insights
from ...core.config import WEEKLY_VOLUME_WEEKS
from ...core.errors import LiftCoachError
from ...core.metrics import e1rm_history, personal_records, total_volume, weekly_volume
from ...io.insight_client import INSIGHT_INTENTS
from ...io.insights import cached_imbalances, strength_prompt
from ...io.serializers import workout_log_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_insight_service, get_store, require_setup


@app.command()
def history(
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Show only the most recent N workouts"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show finished workouts.
    """
    store = get_store(data_dir)
    try:
        logs = store.load_logs()
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit is not None:
        logs = logs[-limit:] if limit > 0 else []

    if json_out:
        print(json.dumps({"workoutLogs": [workout_log_to_dict(log) for log in logs]}, indent=2))
        return

    views.print_history(logs)


@app.command()
def stats(
    weeks: Annotated[
        int,
        typer.Option("--weeks", "-w", help="Weeks in the volume chart"),
    ] = WEEKLY_VOLUME_WEEKS,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show streak, total volume, personal records and weekly volume.
    """
    store = get_store(data_dir)
    profile, _ = require_setup(store)
    try:
        logs = store.load_logs()
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    today = datetime.now().date()
    streak = calculate_streaks(logs, profile.preferred_days, today)
    weekly = weekly_volume(logs, weeks=weeks, today=today)
    records = personal_records(logs)
    volume = total_volume(logs)

    if json_out:
        print(json.dumps({
            "workouts": len(logs),
            "total_volume_kg": round(volume, 1),
            "streak": {"current": streak.current, "best": streak.best, "unit": streak.granularity},
            "weekly_volume": [{"week": start.isoformat(), "volume_kg": round(v, 1)} for start, v in weekly],
            "personal_records": [asdict(r) for r in records],
        }, indent=2))
        return

    unit = "days" if streak.granularity == "day" else "weeks"
    views.console.print(f"Workouts: [bold]{len(logs)}[/bold]   Total volume: [bold]{volume:,.0f} kg[/bold]")
    views.console.print(f"Streak: [bold]{streak.current}[/bold] {unit} (best {streak.best})")
    views.console.print()
    views.print_volume_chart(weekly)
    if records:
        views.console.print()
        views.console.print("[bold]Personal records (e1RM)[/bold]")
        for r in records[:10]:
            views.console.print(f"  {r.exercise}: {r.e1rm:.1f} kg ({r.reps} x {r.weight_kg:g} on {r.date})")


@app.command()
def e1rm(
    exercise: Annotated[str, typer.Argument(help="Exercise name as logged (case-insensitive)")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Plot estimated 1RM (Epley) for one exercise over time.
    """
    store = get_store(data_dir)
    try:
        points = e1rm_history(store.load_logs(), exercise)
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "exercise": exercise,
            "data_points": [{"date": d, "e1rm": round(v, 1)} for d, v in points],
        }, indent=2))
        return

    views.print_e1rm_plot(points, exercise)


@app.command()
def strength(
    narrative: Annotated[
        bool,
        typer.Option("--narrative", help="Add an AI-written summary"),
    ] = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Strength levels against standards, imbalances, plateaus and pain patterns.
    """
    store = get_store(data_dir)
    profile, _ = require_setup(store)
    try:
        logs = store.load_logs()
        data = generate_strength_insights(
            logs, profile, imbalances=cached_imbalances(store, logs)
        )
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    text = None
    if narrative:
        service = get_insight_service(store)
        text = asyncio.run(service.get_insight("strength_narrative", strength_prompt(data)))

    if json_out:
        result = asdict(data)
        if text is not None:
            result["narrative"] = text
        print(json.dumps(result, indent=2))
        return

    views.print_strength(data)
    if text is not None:
        views.console.print()
        views.console.print(text)


@app.command()
def insight(
    intent: Annotated[
        str,
        typer.Option("--intent", "-i", help="daily_insight | coach_feedback | strength_narrative"),
    ] = "daily_insight",
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Ask the AI coach for advice. Falls back to a stock tip when unavailable.
    """
    if intent not in INSIGHT_INTENTS:
        views.print_error(f"Unknown intent '{intent}'. Choose from: {', '.join(INSIGHT_INTENTS)}")
        raise typer.Exit(1)

    store = get_store(data_dir)
    try:
        text = asyncio.run(get_insight_service(store).get_insight(intent))  # type: ignore[arg-type]
    except LiftCoachError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({"intent": intent, "text": text}, indent=2))
        return

    views.console.print(text)
