"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of schedules, workouts and analytics.
"""

from datetime import date

from rich.console import Console
from rich.table import Table

from ..core.ascii_plot import create_e1rm_plot, create_weekly_volume_chart
from ..core.metrics import exercise_e1rm, workout_volume
from ..core.models import (
    ActiveWorkoutState,
    ScheduleResult,
    Session,
    StrengthInsightsData,
    StreakResult,
    WorkoutLog,
    WorkoutStatus,
)

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

console = Console()


def _fmt_weight(weight_kg: float | None) -> str:
    if weight_kg is None:
        return "-"
    return f"{weight_kg:g} kg"


def _fmt_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m" if hours else f"{minutes}m {secs:02d}s"


def _day_label(day: date) -> str:
    return f"{WEEKDAY_NAMES[day.isoweekday() % 7]} {day.isoformat()}"


# =============================================================================
# Schedule
# =============================================================================


def format_session_table(session: Session, title: str | None = None) -> Table:
    """
    Create a Rich table listing a session's prescription.

    Args:
        session: Session (possibly adapted, with warm-ups)
        title: Table title (default: session name)

    Returns:
        Rich Table object
    """
    table = Table(title=title or session.name)

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Rest", justify="right")

    for i, ex in enumerate(session.exercises, 1):
        table.add_row(
            str(i),
            f"[dim]{ex.name}[/dim]" if ex.is_warmup else ex.name,
            str(ex.sets),
            ex.reps,
            _fmt_weight(ex.weight_kg),
            f"{ex.rest_seconds}s",
        )

    return table


def print_scheduled_day(result: ScheduleResult, streak: StreakResult | None = None) -> None:
    """
    Print what is due on one date.

    Args:
        result: Scheduler decision
        streak: Optional streak to show underneath
    """
    day = date.fromisoformat(result.date)
    if result.kind == "completed" and result.log is not None:
        console.print(f"[green]✓ {_day_label(day)}: completed {result.log.session_name}[/green]")
    elif result.kind == "planned" and result.session is not None:
        console.print(f"[bold]{_day_label(day)}:[/bold] {result.session.name}")
        console.print(format_session_table(result.session))
    else:
        console.print(f"[dim]{_day_label(day)}: rest day[/dim]")

    if streak is not None:
        unit = "days" if streak.granularity == "day" else "weeks"
        console.print(f"Streak: [bold]{streak.current}[/bold] {unit} (best {streak.best})")


def print_week(results: list[ScheduleResult]) -> None:
    """Print a projected schedule as a table."""
    table = Table(title="Upcoming Schedule")
    table.add_column("Date", style="cyan")
    table.add_column("Status")
    table.add_column("Session", style="bold")
    table.add_column("Exercises", justify="right")

    for result in results:
        day = date.fromisoformat(result.date)
        if result.kind == "completed" and result.log is not None:
            table.add_row(_day_label(day), "[green]done[/green]", result.log.session_name, str(len(result.log.exercises)))
        elif result.kind == "planned" and result.session is not None:
            table.add_row(_day_label(day), "planned", result.session.name, str(len(result.session.exercises)))
        else:
            table.add_row(_day_label(day), "[dim]rest[/dim]", "", "")

    console.print(table)


# =============================================================================
# Active workout
# =============================================================================


def print_active_workout(
    state: ActiveWorkoutState,
    status: WorkoutStatus,
    progress: tuple[int, int],
    elapsed_seconds: int,
) -> None:
    """
    Print the in-progress workout with every set.

    Args:
        state: Active workout snapshot
        status: State machine status
        progress: (completed, total) sets
        elapsed_seconds: Time since start
    """
    done, total = progress
    header = f"[bold]{state.session_name}[/bold]  {done}/{total} sets  {_fmt_duration(elapsed_seconds)}"
    if status == "stale":
        header += "  [yellow](stale: continue or discard)[/yellow]"
    if state.readiness is not None:
        header += f"  readiness {state.readiness.status}"
    console.print(header)

    table = Table(show_header=True, header_style="dim")
    table.add_column("Ex", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Set", justify="right")
    table.add_column("Target")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("RIR", justify="right")
    table.add_column("Done", justify="center")

    for ei, ex in enumerate(state.exercises, 1):
        for si, s in enumerate(ex.sets, 1):
            target = s.target_reps
            if s.target_weight_kg is not None:
                target += f" @ {s.target_weight_kg:g}"
            table.add_row(
                str(ei) if si == 1 else "",
                ex.name if si == 1 else "",
                str(si),
                target,
                "-" if s.reps is None else str(s.reps),
                _fmt_weight(s.weight_kg),
                "-" if s.rir is None else str(s.rir),
                "[green]✓[/green]" if s.is_completed else "",
            )

    console.print(table)
    if state.pain is not None and state.pain.has_pain:
        console.print(f"[yellow]Pain reported: {state.pain.location}[/yellow]")


# =============================================================================
# History and analytics
# =============================================================================


def format_log_table(logs: list[WorkoutLog]) -> Table:
    """Create a Rich table of finished workouts."""
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Session", style="magenta")
    table.add_column("Duration", justify="right")
    table.add_column("Exercises", justify="right")
    table.add_column("Volume(kg)", justify="right", style="bold")
    table.add_column("Readiness")
    table.add_column("Pain")

    for i, log in enumerate(logs, 1):
        pain = log.feedback.pain if log.feedback else None
        table.add_row(
            str(i),
            log.date,
            log.session_name,
            _fmt_duration(log.duration_seconds),
            str(len(log.exercises)),
            f"{workout_volume(log):.0f}",
            log.readiness.status if log.readiness else "-",
            (pain.location or "yes") if pain is not None and pain.has_pain else "",
        )

    return table


def print_history(logs: list[WorkoutLog]) -> None:
    if not logs:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return
    console.print(format_log_table(logs))


def print_log_summary(log: WorkoutLog) -> None:
    """Print one finished workout."""
    console.print(
        f"[bold]{log.session_name}[/bold] on {log.date}: "
        f"{_fmt_duration(log.duration_seconds)}, {workout_volume(log):.0f} kg volume"
    )
    for ex in log.exercises:
        e1rm = exercise_e1rm(ex)
        sets = ", ".join(
            f"{s.reps}x{s.weight_kg:g}" if s.weight_kg else str(s.reps) for s in ex.sets
        )
        suffix = f"  (e1RM {e1rm:.1f})" if e1rm > 0 else ""
        console.print(f"  {ex.name}: {sets}{suffix}")


def print_e1rm_plot(history: list[tuple[str, float]], exercise_name: str) -> None:
    console.print(create_e1rm_plot(history, exercise_name))


def print_volume_chart(weekly: list[tuple[date, float]]) -> None:
    """
    Print weekly volume chart.

    Args:
        weekly: (week start, volume) pairs from weekly_volume()
    """
    console.print(create_weekly_volume_chart(weekly))


def print_strength(data: StrengthInsightsData) -> None:
    """Print the strength dashboard: levels, imbalances, plateaus and pain."""
    if data.lifts:
        table = Table(title="Strength Levels")
        table.add_column("Lift", style="cyan")
        table.add_column("e1RM", justify="right", style="bold")
        table.add_column("xBW", justify="right")
        table.add_column("Level", style="magenta")
        table.add_column("Pct", justify="right")
        table.add_column("Next level", justify="right")
        table.add_column("Trend")
        for lift in data.lifts:
            table.add_row(
                lift.exercise,
                f"{lift.e1rm:.1f}",
                f"{lift.relative_strength:.2f}",
                lift.level,
                str(lift.percentile),
                _fmt_weight(lift.next_level_target_kg),
                lift.trend,
            )
        console.print(table)
        if data.overall_level:
            console.print(f"Overall level: [bold]{data.overall_level}[/bold]")
    else:
        console.print("[yellow]No key lifts (squat, bench, deadlift, press, row) logged yet.[/yellow]")

    if data.imbalances:
        console.print()
        console.print("[bold]Imbalances[/bold]")
        for report in data.imbalances:
            color = {"severe": "red", "moderate": "yellow"}.get(report.severity, "blue")
            console.print(f"  [{color}]{report.severity}[/{color}] {report.description}")
            console.print(f"    [dim]{report.recommendation}[/dim]")

    if data.plateaus:
        console.print()
        console.print("[bold]Plateaus[/bold]")
        for p in data.plateaus:
            console.print(
                f"  {p.exercise}: {p.weeks_stuck} weeks since PR on {p.last_pr_date} "
                f"(best {p.best_e1rm:.1f}, now {p.current_e1rm:.1f})"
            )

    if data.pain_patterns:
        console.print()
        console.print("[bold]Recurring pain[/bold]")
        for pattern in data.pain_patterns:
            top = ", ".join(name for name, _ in sorted(pattern.exercises.items(), key=lambda kv: -kv[1])[:3])
            console.print(
                f"  {pattern.location}: {pattern.frequency}x, last {pattern.last_occurrence} "
                f"({pattern.movement_pattern}; {top})"
            )

    if data.readiness is not None:
        r = data.readiness
        console.print()
        console.print(
            f"Readiness over {r.samples} check-ins: sleep {r.avg_sleep:.1f}, "
            f"stress {r.avg_stress:.1f}, soreness {r.avg_soreness:.1f}"
        )
        if r.chronic_low_sleep:
            print_warning("Sleep scores are consistently low.")
        if r.high_stress:
            print_warning("Stress scores are consistently poor.")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
