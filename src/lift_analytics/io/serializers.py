"""
JSON serialization for recorded sets and exercises.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
import re
from datetime import datetime
from typing import Any

from ..core.errors import SetValidationError
from ..core.models import Exercise, WorkoutSet

_FLAG_FIELDS = (
    "is_warm_up",
    "is_bonus",
    "is_drop_set",
    "is_assisted",
    "is_pause_at_top",
    "is_timed_set",
    "is_pb",
)


class ValidationError(Exception):
    """Raised when stored or user-supplied data is malformed."""

    pass


def validate_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    Args:
        value: Timestamp string

    Returns:
        Parsed datetime (naive or aware, as written)

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value}") from e


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_name(name: str) -> str:
    """
    Validate and normalize an exercise name.

    Raises:
        ValidationError: If name is empty after trimming
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Invalid exercise name: {name!r}. Must be a non-empty string.")
    return name.strip()


def set_to_dict(s: WorkoutSet) -> dict[str, Any]:
    """
    Convert WorkoutSet to JSON-compatible dict.

    False flags and unset optional fields are omitted to keep lines short.
    """
    d: dict[str, Any] = {
        "set_id": s.set_id,
        "exercise_id": s.exercise_id,
        "timestamp": s.timestamp.isoformat(),
        "weight": s.weight,
        "reps": s.reps,
    }
    for name in _FLAG_FIELDS:
        if getattr(s, name):
            d[name] = True
    if s.tempo_seconds:
        d["tempo_seconds"] = s.tempo_seconds
    if s.rest_seconds is not None:
        d["rest_seconds"] = s.rest_seconds
    return d


def dict_to_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    Args:
        data: Dict representation

    Returns:
        WorkoutSet instance

    Raises:
        ValidationError: If data is invalid
    """
    try:
        weight = float(data["weight"])
        reps = int(data["reps"])
        timestamp = validate_timestamp(data["timestamp"])
        set_id = str(data["set_id"])
    except KeyError as e:
        raise ValidationError(f"Missing field: {e.args[0]}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid set value: {e}") from e

    rest = data.get("rest_seconds")
    if rest is not None:
        validate_non_negative(rest, "rest_seconds")

    try:
        return WorkoutSet(
            weight=weight,
            reps=reps,
            timestamp=timestamp,
            exercise_id=str(data.get("exercise_id", "")),
            tempo_seconds=int(data.get("tempo_seconds", 0)),
            rest_seconds=int(rest) if rest is not None else None,
            set_id=set_id,
            **{name: bool(data.get(name, False)) for name in _FLAG_FIELDS},
        )
    except SetValidationError as e:
        raise ValidationError(str(e)) from e


def set_to_json_line(s: WorkoutSet) -> str:
    """Serialize a set as one compact JSONL line (no trailing newline)."""
    return json.dumps(set_to_dict(s), separators=(",", ":"))


def json_line_to_set(line: str) -> WorkoutSet:
    """
    Parse one JSONL line.

    Raises:
        ValidationError: If the line is not valid JSON or not a valid set
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return dict_to_set(data)


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """Convert Exercise to JSON-compatible dict."""
    return {
        "exercise_id": exercise.exercise_id,
        "name": exercise.name,
        "tags": sorted(exercise.tags),
        "note": exercise.note,
        "created_at": exercise.created_at.isoformat(),
        "last_updated": exercise.last_updated.isoformat() if exercise.last_updated else None,
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        name = validate_name(data["name"])
        exercise_id = str(data["exercise_id"])
        created_at = validate_timestamp(data["created_at"])
    except KeyError as e:
        raise ValidationError(f"Missing field: {e.args[0]}") from e

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise ValidationError(f"tags must be a list, got {type(tags).__name__}")

    last_updated = data.get("last_updated")
    return Exercise(
        name=name,
        tags=frozenset(str(t) for t in tags),
        note=data.get("note"),
        exercise_id=exercise_id,
        created_at=created_at,
        last_updated=validate_timestamp(last_updated) if last_updated else None,
    )


def parse_tags(tags_str: str | None) -> frozenset[str]:
    """Parse a comma-separated tag list ("chest, push") into a set."""
    if not tags_str:
        return frozenset()
    return frozenset(t.strip().lower() for t in tags_str.split(",") if t.strip())


_SET_SPEC = re.compile(
    r"^\s*(?:(?P<weight>\d+(?:\.\d+)?)\s*(?:kg)?\s*[x×]\s*)?(?P<reps>\d+)\s*$",
    re.IGNORECASE,
)
_WEIGHT_ONLY_SPEC = re.compile(r"^\s*(?P<weight>\d+(?:\.\d+)?)\s*kg\s*$", re.IGNORECASE)


def parse_set_spec(spec: str) -> tuple[float, int]:
    """
    Parse a compact set string into (weight, reps).

    Accepted forms:
      "60x10", "60 x 10", "60kg x 10", "62.5×8"  -> weighted set
      "12"                                       -> bodyweight set (weight 0)
      "100kg"                                    -> weight-only set (reps 0)

    Args:
        spec: Set string

    Returns:
        (weight, reps)

    Raises:
        ValidationError: If the string doesn't match any form
    """
    m = _SET_SPEC.match(spec)
    if m:
        weight = float(m.group("weight")) if m.group("weight") else 0.0
        return weight, int(m.group("reps"))
    m = _WEIGHT_ONLY_SPEC.match(spec)
    if m:
        return float(m.group("weight")), 0
    raise ValidationError(
        f"Invalid set: {spec!r}. Expected WEIGHTxREPS (e.g. 60x10), REPS, or WEIGHTkg"
    )
