"""Shared Typer app object, shared option types, and store/engine utilities."""

from pathlib import Path
from typing import Annotated

import typer

from ..core.engine.exercise_engine import ExerciseEngine
from ..core.models import Exercise, WorkoutSet
from ..io.set_store import JsonlSetStore, get_default_store

# Global options set by the main callback
state: dict[str, Path | None] = {"data_dir": None}

# Short set ids shown in tables
SET_ID_DISPLAY_LENGTH = 8

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

ExerciseArgument = Annotated[
    str,
    typer.Argument(help="Exercise name or id"),
]

app = typer.Typer(
    name="lift-analytics",
    help="Workout set log with personal records, progress and overload targets.",
    no_args_is_help=True,
)


def get_store() -> JsonlSetStore:
    """Get the set store in --data-dir or the default location."""
    if state["data_dir"] is not None:
        return JsonlSetStore(state["data_dir"])
    return get_default_store()


def get_engine() -> ExerciseEngine:
    """Get an engine over a fresh store."""
    return ExerciseEngine(get_store())


def resolve_exercise(engine: ExerciseEngine, ref: str) -> Exercise | None:
    """Find an exercise by exact id, else by case-insensitive name."""
    exercises = engine.store.load_exercises()
    for ex in exercises:
        if ex.exercise_id == ref:
            return ex
    key = ref.strip().casefold()
    for ex in exercises:
        if ex.name.casefold() == key:
            return ex
    return None


def resolve_set(sets: list[WorkoutSet], ref: str) -> WorkoutSet | None:
    """Find a set by id or unique id prefix."""
    matches = [s for s in sets if s.set_id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
