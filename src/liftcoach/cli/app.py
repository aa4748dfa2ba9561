"""Shared Typer app object, shared option types, and store utilities."""

from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import AppSettings, load_settings
from ..core.errors import NoProgramError
from ..core.models import Profile, Program
from ..core.session import SessionTracker
from ..io.history_store import HistoryStore
from ..io.insight_client import HttpInsightClient
from ..io.insights import InsightService
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Directory holding liftcoach data (default from settings)"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="liftcoach",
    help="Adaptive strength-training coach: rotation schedule, readiness auto-regulation and strength analytics.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_settings() -> AppSettings:
    return load_settings()


def get_store(data_dir: Path | None) -> HistoryStore:
    """Get history store from a directory or the configured default."""
    if data_dir is None:
        data_dir = get_settings().data_dir
    return HistoryStore.at(data_dir)


def get_tracker(store: HistoryStore) -> SessionTracker:
    """Session state machine wired to the store and configured stale threshold."""
    return SessionTracker(store, stale_threshold_seconds=get_settings().stale_threshold_seconds)


def require_setup(store: HistoryStore) -> tuple[Profile, Program]:
    """
    Load profile and program, or print an error and exit.

    Raises:
        typer.Exit: If either is missing or the program has no sessions
    """
    profile = store.load_profile()
    program = store.load_program()
    if profile is None or program is None:
        views.print_error("No profile or program found.")
        views.print_info("Run 'liftcoach init --profile FILE --program FILE' first.")
        raise typer.Exit(1)
    if not program.sessions:
        views.print_error(str(NoProgramError()))
        raise typer.Exit(1)
    return profile, program


def parse_date_option(value: str | None) -> date:
    """
    Parse a YYYY-MM-DD option, defaulting to today.

    Raises:
        typer.Exit: On a malformed date
    """
    if value is None:
        return datetime.now().date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        views.print_error(f"Invalid date: {value}. Expected YYYY-MM-DD")
        raise typer.Exit(1)


def get_insight_service(store: HistoryStore) -> InsightService:
    """Insight service using the configured endpoint; fallbacks only when none is set."""
    settings = get_settings()
    client = None
    if settings.insight_url:
        client = HttpInsightClient(
            settings.insight_url,
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
        )
    return InsightService(store, client, cache_ttl_seconds=settings.insight_ttl_seconds)
