"""
CLI entry point using Typer.

Provides commands for training with an adaptive program:
- init: Save profile and program, import history
- today / week: Scheduled workout and projected schedule
- override / clear-override / swap: Adjust the schedule
- start / set / done / pain / show / finish / discard / resume: Run a workout
- history / stats / e1rm / strength / insight: Review progress
"""

import logging
from typing import Annotated

import typer

from .app import app
from .commands import analysis, profile, schedule, workout  # noqa: F401  (register commands)
from .commands.schedule import today


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine activity to stderr"),
    ] = False,
) -> None:
    """
    Adaptive strength-training coach. Run without a command to see today's workout.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is not None:
        return

    ctx.invoke(today)


if __name__ == "__main__":
    app()
