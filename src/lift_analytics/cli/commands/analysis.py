"""Analysis commands: history, status, targets, tags."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.errors import LiftAnalyticsError
from ...core.overload import progression_targets
from ...core.summary import progression_to_dict, summarize_exercise, tag_distribution
from ...io.serializers import ValidationError, set_to_dict
from .. import views
from ..app import ExerciseArgument, JsonOption, app, get_engine, resolve_exercise

TodayOption = Annotated[
    Optional[str],
    typer.Option("--today", help="Treat this date as today (YYYY-MM-DD)"),
]


def _parse_today(today: str | None) -> date | None:
    if today is None:
        return None
    try:
        return date.fromisoformat(today)
    except ValueError:
        views.print_error(f"Invalid date: {today}. Expected YYYY-MM-DD")
        raise typer.Exit(1)


def _load(exercise_ref: str):
    engine = get_engine()
    exercise = resolve_exercise(engine, exercise_ref)
    if exercise is None:
        views.print_error(f"Exercise not found: {exercise_ref}")
        raise typer.Exit(1)
    try:
        sets = engine.sets_for(exercise.exercise_id)
    except (LiftAnalyticsError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    return engine, exercise, sets


@app.command("history")
def history(exercise_ref: ExerciseArgument, json_out: JsonOption = False) -> None:
    """Show every set of an exercise, grouped by day."""
    _, exercise, sets = _load(exercise_ref)

    if json_out:
        print(json.dumps([set_to_dict(s) for s in reversed(sets)], indent=2))
        return
    views.print_history(sets, exercise)


@app.command("status")
def status(
    exercise_ref: ExerciseArgument,
    today: TodayOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show today's progress, personal record and best day."""
    engine, exercise, sets = _load(exercise_ref)
    summary = summarize_exercise(sets, _parse_today(today), engine.config)

    if json_out:
        print(json.dumps(dict(summary, exercise=exercise.name), indent=2))
        return
    views.print_status(summary, exercise)


@app.command("targets")
def targets(
    exercise_ref: ExerciseArgument,
    today: TodayOption = None,
    json_out: JsonOption = False,
) -> None:
    """Suggest progressive-overload targets for the next session."""
    engine, exercise, sets = _load(exercise_ref)
    result = progression_targets(sets, _parse_today(today), engine.config)

    if json_out:
        print(json.dumps(progression_to_dict(result), indent=2))
        return
    views.print_targets(result, exercise)


@app.command("tags")
def tags(today: TodayOption = None, json_out: JsonOption = False) -> None:
    """Show how today's training splits across exercise tags."""
    engine = get_engine()
    try:
        exercises = engine.store.load_exercises()
        sets_by_exercise = {ex.exercise_id: engine.sets_for(ex.exercise_id) for ex in exercises}
    except (LiftAnalyticsError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    distribution = tag_distribution(exercises, sets_by_exercise, _parse_today(today))
    if json_out:
        print(json.dumps([{"tag": t, "percent": p} for t, p in distribution], indent=2))
        return
    views.print_tag_distribution(distribution)
