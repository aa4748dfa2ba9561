"""Profile commands: init (profile, program and history import)."""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.errors import LiftCoachError
from ...io.history_store import LOGS_KEY
from ...io.serializers import (
    ValidationError,
    dict_to_profile,
    dict_to_program,
    dict_to_workout_log,
    load_definition_file,
    profile_to_dict,
)
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store


@app.command()
def init(
    profile_file: Annotated[
        Optional[Path],
        typer.Option("--profile", help="Profile definition (YAML or JSON)"),
    ] = None,
    program_file: Annotated[
        Optional[Path],
        typer.Option("--program", help="Program definition (YAML or JSON)"),
    ] = None,
    logs_file: Annotated[
        Optional[Path],
        typer.Option("--import-logs", help="JSON/YAML file with a workoutLogs list to merge"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Save the user profile and training program.

    Each file is optional so the profile and program can be updated
    separately. Imported logs are merged by date; existing dates are kept.

      liftcoach init --profile me.yaml --program ppl.yaml
    """
    if profile_file is None and program_file is None and logs_file is None:
        views.print_error("Nothing to do: pass --profile, --program or --import-logs.")
        raise typer.Exit(1)

    store = get_store(data_dir)
    summary: dict = {}

    try:
        if profile_file is not None:
            profile = dict_to_profile(load_definition_file(profile_file))
            store.save_profile(profile)
            summary["profile"] = profile_to_dict(profile)

        if program_file is not None:
            program = dict_to_program(load_definition_file(program_file))
            if not program.sessions:
                raise ValidationError(f"{program_file} defines no sessions")
            store.save_program(program)
            summary["program"] = {
                "name": program.name,
                "sessions": [s.name for s in program.sessions],
            }

        if logs_file is not None:
            raw = load_definition_file(logs_file).get(LOGS_KEY)
            if not isinstance(raw, list):
                raise ValidationError(f"{logs_file} must contain a '{LOGS_KEY}' list")
            summary["imported_logs"] = store.import_logs(dict_to_workout_log(item) for item in raw)
    except (LiftCoachError, FileNotFoundError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(summary, indent=2))
        return

    if "profile" in summary:
        p = summary["profile"]
        views.print_success(
            f"Profile saved: {p['gender']}, {p['age']} y, {p['weight_kg']:g} kg, {p['experience']}"
        )
    if "program" in summary:
        names = ", ".join(summary["program"]["sessions"])
        views.print_success(f"Program '{summary['program']['name']}' saved: {names}")
    if "imported_logs" in summary:
        views.print_success(f"Imported {summary['imported_logs']} workouts")
