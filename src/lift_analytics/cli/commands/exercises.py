"""Exercise commands: add-exercise, list-exercises, rename-exercise, delete-exercise."""

import json
from typing import Annotated, Optional

import typer

from ...core.errors import LiftAnalyticsError
from ...io.serializers import ValidationError, exercise_to_dict, parse_tags
from .. import views
from ..app import ExerciseArgument, JsonOption, app, get_engine, resolve_exercise


@app.command("add-exercise")
def add_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name, e.g. 'Bench press'")],
    tags: Annotated[
        Optional[str],
        typer.Option("--tags", "-t", help="Comma-separated tags, e.g. 'chest, push'"),
    ] = None,
    note: Annotated[
        Optional[str],
        typer.Option("--note", "-n", help="Free-text note"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Create a new exercise.

      lift-analytics add-exercise "Bench press" --tags chest,push
    """
    engine = get_engine()
    try:
        exercise = engine.add_exercise(name, parse_tags(tags), note)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(exercise_to_dict(exercise), indent=2))
        return
    views.print_success(f"Added exercise: {exercise.name}")


@app.command("list-exercises")
def list_exercises(json_out: JsonOption = False) -> None:
    """List all exercises."""
    engine = get_engine()
    try:
        exercises = engine.store.load_exercises()
        counts = {ex.exercise_id: len(engine.sets_for(ex.exercise_id)) for ex in exercises}
    except (LiftAnalyticsError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(
            [dict(exercise_to_dict(ex), set_count=counts[ex.exercise_id]) for ex in exercises],
            indent=2,
        ))
        return

    if not exercises:
        views.console.print("[yellow]No exercises yet. Add one with 'add-exercise'.[/yellow]")
        return
    views.console.print(views.format_exercise_table(exercises, counts))


@app.command("rename-exercise")
def rename_exercise(
    exercise_ref: ExerciseArgument,
    new_name: Annotated[str, typer.Argument(help="New exercise name")],
) -> None:
    """Rename an exercise."""
    engine = get_engine()
    exercise = resolve_exercise(engine, exercise_ref)
    if exercise is None:
        views.print_error(f"Exercise not found: {exercise_ref}")
        raise typer.Exit(1)

    old_name = exercise.name
    try:
        engine.rename_exercise(exercise.exercise_id, new_name)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)
    views.print_success(f"Renamed {old_name} to {exercise.name}")


@app.command("delete-exercise")
def delete_exercise(
    exercise_ref: ExerciseArgument,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation"),
    ] = False,
) -> None:
    """Delete an exercise and all of its sets."""
    engine = get_engine()
    exercise = resolve_exercise(engine, exercise_ref)
    if exercise is None:
        views.print_error(f"Exercise not found: {exercise_ref}")
        raise typer.Exit(1)

    n_sets = len(engine.sets_for(exercise.exercise_id))
    if not force and not views.confirm_action(f"Delete {exercise.name} and its {n_sets} set(s)?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        engine.delete_exercise(exercise.exercise_id)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)
    views.print_success(f"Deleted {exercise.name} ({n_sets} set(s))")
