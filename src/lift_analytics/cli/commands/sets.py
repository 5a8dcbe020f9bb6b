"""Set commands: log-set, repeat-set, edit-set, toggle-warm-up, delete-set, rest-expired."""

import json
from datetime import datetime
from typing import Annotated, Any, Optional

import typer

from ...core.engine.exercise_engine import AddSetResult, ExerciseEngine
from ...core.errors import LiftAnalyticsError
from ...core.models import Exercise, WorkoutSet
from ...io.serializers import ValidationError, parse_set_spec, set_to_dict, validate_timestamp
from .. import views
from ..app import ExerciseArgument, JsonOption, app, get_engine, resolve_exercise, resolve_set

SetIdArgument = Annotated[str, typer.Argument(help="Set id (or unique prefix, as shown by 'history')")]

AtOption = Annotated[
    Optional[str],
    typer.Option("--at", help="Timestamp (ISO 8601, default: now), e.g. 2026-03-01T18:30:00"),
]


def _exercise_or_exit(engine: ExerciseEngine, ref: str) -> Exercise:
    exercise = resolve_exercise(engine, ref)
    if exercise is None:
        views.print_error(f"Exercise not found: {ref}")
        raise typer.Exit(1)
    return exercise


def _set_or_exit(engine: ExerciseEngine, exercise: Exercise, ref: str) -> WorkoutSet:
    s = resolve_set(engine.sets_for(exercise.exercise_id), ref)
    if s is None:
        views.print_error(f"Set not found (or ambiguous): {ref}")
        raise typer.Exit(1)
    return s


def _parse_at(at: str | None) -> datetime | None:
    if at is None:
        return None
    try:
        return validate_timestamp(at)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _report_added(result: AddSetResult, exercise: Exercise, json_out: bool) -> None:
    if json_out:
        print(json.dumps({
            "set": set_to_dict(result.workout_set),
            "is_new_pr": result.is_new_pr,
            "rest_captured_on": result.rest_captured_on.set_id if result.rest_captured_on else None,
            "rest_seconds": result.rest_captured_on.rest_seconds if result.rest_captured_on else None,
        }, indent=2))
        return

    s = result.workout_set
    label = f" ({s.set_type_label})" if s.set_type_label else ""
    views.print_success(f"Logged {views.format_set(s)}{label} for {exercise.name}")
    if result.rest_captured_on is not None:
        views.print_info(f"Rest after previous set: {result.rest_captured_on.rest_seconds}s")
    if result.is_new_pr:
        views.console.print("[bold yellow]★ New personal record![/bold yellow]")


@app.command("log-set")
def log_set(
    exercise_ref: ExerciseArgument,
    set_spec: Annotated[
        str,
        typer.Argument(help="WEIGHTxREPS (60x10), REPS for bodyweight (12), or WEIGHTkg"),
    ],
    at: AtOption = None,
    warm_up: Annotated[bool, typer.Option("--warm-up", help="Warm-up set")] = False,
    bonus: Annotated[bool, typer.Option("--bonus", help="Bonus set (not counted in analytics)")] = False,
    drop_set: Annotated[bool, typer.Option("--drop-set", help="Drop set")] = False,
    assisted: Annotated[bool, typer.Option("--assisted", help="Assisted reps")] = False,
    pause: Annotated[bool, typer.Option("--pause", help="Pause at top")] = False,
    tempo: Annotated[
        Optional[int],
        typer.Option("--tempo", help="Timed set: seconds per rep"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Record a set.

      lift-analytics log-set "Bench press" 60x10
      lift-analytics log-set "Pull-up" 12 --at 2026-03-01T18:30:00
    """
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    timestamp = _parse_at(at)

    try:
        weight, reps = parse_set_spec(set_spec)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        result = engine.add_set(
            exercise.exercise_id,
            weight,
            reps,
            timestamp,
            is_warm_up=warm_up,
            is_bonus=bonus,
            is_drop_set=drop_set,
            is_assisted=assisted,
            is_pause_at_top=pause,
            is_timed_set=tempo is not None,
            tempo_seconds=tempo or 0,
        )
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    _report_added(result, exercise, json_out)


@app.command("repeat-set")
def repeat_set(
    exercise_ref: ExerciseArgument,
    set_ref: Annotated[
        Optional[str],
        typer.Option("--set", "-s", help="Set id to repeat (default: the latest set)"),
    ] = None,
    at: AtOption = None,
    json_out: JsonOption = False,
) -> None:
    """Record the latest (or a chosen) set again as a working set."""
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    timestamp = _parse_at(at)
    set_id = _set_or_exit(engine, exercise, set_ref).set_id if set_ref else None

    try:
        result = engine.repeat_set(exercise.exercise_id, set_id, timestamp)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    _report_added(result, exercise, json_out)


@app.command("edit-set")
def edit_set(
    exercise_ref: ExerciseArgument,
    set_ref: SetIdArgument,
    weight: Annotated[Optional[float], typer.Option("--weight", "-w", help="New weight in kg")] = None,
    reps: Annotated[Optional[int], typer.Option("--reps", "-r", help="New rep count")] = None,
    at: AtOption = None,
    bonus: Annotated[Optional[bool], typer.Option("--bonus/--no-bonus", help="Bonus flag")] = None,
    drop_set: Annotated[Optional[bool], typer.Option("--drop-set/--no-drop-set", help="Drop-set flag")] = None,
    assisted: Annotated[Optional[bool], typer.Option("--assisted/--no-assisted", help="Assisted flag")] = None,
    pause: Annotated[Optional[bool], typer.Option("--pause/--no-pause", help="Pause-at-top flag")] = None,
    json_out: JsonOption = False,
) -> None:
    """Edit a recorded set."""
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    target = _set_or_exit(engine, exercise, set_ref)

    changes: dict[str, Any] = {}
    for name, value in (
        ("weight", weight),
        ("reps", reps),
        ("timestamp", _parse_at(at)),
        ("is_bonus", bonus),
        ("is_drop_set", drop_set),
        ("is_assisted", assisted),
        ("is_pause_at_top", pause),
    ):
        if value is not None:
            changes[name] = value

    if not changes:
        views.print_warning("Nothing to change.")
        raise typer.Exit(0)

    try:
        updated = engine.update_set(exercise.exercise_id, target.set_id, **changes)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(set_to_dict(updated), indent=2))
        return
    views.print_success(f"Updated set: {views.format_set(updated)}")


@app.command("toggle-warm-up")
def toggle_warm_up(exercise_ref: ExerciseArgument, set_ref: SetIdArgument) -> None:
    """Mark a set as warm-up, or back as a working set."""
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    target = _set_or_exit(engine, exercise, set_ref)

    try:
        updated = engine.toggle_warm_up(exercise.exercise_id, target.set_id)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    state = "warm-up" if updated.is_warm_up else "working"
    views.print_success(f"Set {views.format_set(updated)} is now a {state} set")


@app.command("delete-set")
def delete_set(
    exercise_ref: ExerciseArgument,
    set_ref: SetIdArgument,
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Delete a recorded set."""
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    target = _set_or_exit(engine, exercise, set_ref)

    desc = f"{views.format_set(target)} at {target.timestamp:%Y-%m-%d %H:%M}"
    if not force and not views.confirm_action(f"Delete {desc}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        engine.delete_set(exercise.exercise_id, target.set_id)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)
    views.print_success(f"Deleted {desc}")


@app.command("rest-expired")
def rest_expired(exercise_ref: ExerciseArgument, set_ref: SetIdArgument) -> None:
    """Record that the rest countdown after a set ran out."""
    engine = get_engine()
    exercise = _exercise_or_exit(engine, exercise_ref)
    target = _set_or_exit(engine, exercise, set_ref)

    try:
        written = engine.expire_rest_timer(exercise.exercise_id, target.set_id)
    except LiftAnalyticsError as e:
        views.print_error(e.message)
        raise typer.Exit(1)

    if written:
        views.print_success(f"Rest recorded as {engine.config.rest_cap_seconds}s")
    else:
        views.print_info(f"Rest already recorded: {target.rest_seconds}s")
