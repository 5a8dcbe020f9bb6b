"""
Read-only summary of one exercise.

Collects every analytics query into a single JSON-ready dict for the CLI
and for any other presentation layer.
"""

from datetime import date
from typing import Any

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .grouping import resolve_today, sets_on_day
from .metrics import average_rest_seconds, session_duration_minutes
from .models import Exercise, ProgressionResult, SessionMetrics, WorkoutSet
from .overload import progression_targets
from .progress import build_progress_state, recent_progress, reps_difference, todays_best_mode
from .quality import find_baseline_session
from .records import personal_record
from .sessions import (
    best_day,
    best_session_total_reps,
    last_session_breakdown,
    last_session_total_reps,
)


def _metrics_dict(m: SessionMetrics | None) -> dict[str, Any] | None:
    if m is None:
        return None
    return {
        "day": m.day.isoformat() if m.day else None,
        "type": m.type,
        "volume": m.volume,
        "max_weight": m.max_weight,
        "max_weight_reps": m.max_weight_reps,
        "set_count": m.set_count,
        "total_reps": m.total_reps,
    }


def progression_to_dict(result: ProgressionResult) -> dict[str, Any]:
    """JSON-ready form of a ProgressionResult."""
    data: dict[str, Any] = {
        "status": result.status,
        "warning": result.warning,
        "message": result.message,
        "baseline_day": result.baseline_day.isoformat() if result.baseline_day else None,
        "targets": None,
    }
    t = result.targets
    if t is not None:
        data["targets"] = {
            "baseline": {
                "set_count": t.baseline.set_count,
                "primary_weight": t.baseline.primary_weight,
                "rep_pattern": list(t.baseline.rep_pattern),
            },
            "rep_progression": {
                "weight": t.rep_progression.weight,
                "target_reps": list(t.rep_progression.target_reps),
                "total_reps_gain": t.rep_progression.total_reps_gain,
            },
            "weight_progression": {
                "weight": t.weight_progression.weight,
                "target_reps": list(t.weight_progression.target_reps),
                "weight_increase": t.weight_progression.weight_increase,
            },
            "recommended_path": t.recommended_path,
        }
    return data


def summarize_exercise(
    sets: list[WorkoutSet],
    today: date | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Run every read-only query for one exercise.

    Empty histories produce None values and "none"/"insufficient" statuses,
    never errors.

    Args:
        sets: All sets for one exercise
        today: Local date treated as today
        config: Thresholds

    Returns:
        JSON-serializable dict
    """
    day = resolve_today(today)
    pr = personal_record(sets)
    best = best_day(sets)
    state = build_progress_state(sets, day)
    baseline = find_baseline_session(sets, day, config)
    breakdown = last_session_breakdown(sets, day)
    recent = recent_progress(sets)
    best_mode = todays_best_mode(sets, best, day)

    todays = sets_on_day(sets, day)
    today_total = state.today.total_reps if state.today else 0
    last_total = last_session_total_reps(sets, day)
    reps_diff = reps_difference(today_total, last_total)

    return {
        "today": day.isoformat(),
        "personal_record": None if pr is None else {
            "weight": pr.weight,
            "reps": pr.reps,
            "timestamp": pr.timestamp.isoformat(),
            "is_bodyweight": pr.is_bodyweight,
            "set_id": pr.set_id,
        },
        "best_day": None if best is None else {
            "day": best.day.isoformat(),
            "max_weight": best.max_weight,
            "reps_at_max_weight": best.reps_at_max_weight,
            "total_volume": best.total_volume,
            "total_reps": best.total_reps,
            "is_bodyweight": best.is_bodyweight,
        },
        "today_metrics": _metrics_dict(state.today),
        "today_duration_minutes": session_duration_minutes(todays, config.session_tail_seconds),
        "today_average_rest_seconds": average_rest_seconds(todays),
        "last_session": None if state.last is None else {
            "metrics": _metrics_dict(state.last.metrics),
            "is_drop_set": state.last.is_drop_set,
            "is_pause_at_top": state.last.is_pause_at_top,
            "is_timed_set": state.last.is_timed_set,
            "tempo_seconds": state.last.tempo_seconds,
            "is_pb": state.last.is_pb,
            "breakdown": [
                {"weight": g.weight, "reps": list(g.reps), "set_count": g.set_count}
                for g in breakdown or []
            ],
        },
        "progress": {
            "can_compare": state.comparison.can_compare,
            "direction": state.comparison.direction,
            "percent_of_last": state.percent_of_last,
            "gains_percent": state.gains_percent,
            "progress_bar_ratio": state.progress_bar_ratio,
            "type_changed": state.type_changed,
            "indicators": None if state.indicators is None else {
                "weight_delta": state.indicators.weight_delta,
                "reps_delta": state.indicators.reps_delta,
                "volume_delta": state.indicators.volume_delta,
            },
            "vs_best_day": None if best_mode is None else {
                "weight_delta": best_mode.weight_delta,
                "reps_delta": best_mode.reps_delta,
                "volume_delta": best_mode.volume_delta,
            },
        },
        "recent_progress": None if recent is None else {
            "recent_day": recent.recent_day.isoformat(),
            "previous_day": recent.previous_day.isoformat(),
            "weight_delta": recent.indicators.weight_delta,
            "reps_delta": recent.indicators.reps_delta,
            "volume_delta": recent.indicators.volume_delta,
        },
        "reps": {
            "last_session_total": last_total,
            "best_session_total": best_session_total_reps(sets, day),
            "difference": None if reps_diff is None else {"amount": reps_diff[0], "label": reps_diff[1]},
        },
        "baseline": {
            "status": baseline.status,
            "day": baseline.day.isoformat() if baseline.day else None,
            "quality": baseline.quality,
            "warning": baseline.warning,
        },
        "progression": progression_to_dict(progression_targets(sets, day, config)),
    }


def tag_distribution(
    exercises: list[Exercise],
    sets_by_exercise: dict[str, list[WorkoutSet]],
    today: date | None = None,
) -> list[tuple[str, float]]:
    """
    Share of today's training per tag.

    Every tagged exercise with a set today weighs 1.0, split evenly over its
    tags. Untagged exercises are left out.

    Args:
        exercises: Exercise catalog
        sets_by_exercise: Sets keyed by exercise_id
        today: Local date treated as today

    Returns:
        (tag, percent) pairs, highest share first then by tag name
    """
    day = resolve_today(today)
    weights: dict[str, float] = {}
    for exercise in exercises:
        if not exercise.tags:
            continue
        if not Exercise.was_worked_out_today(sets_by_exercise.get(exercise.exercise_id, []), day):
            continue
        share = 1.0 / len(exercise.tags)
        for tag in exercise.tags:
            weights[tag] = weights.get(tag, 0.0) + share

    total = sum(weights.values())
    if total == 0:
        return []
    return sorted(
        ((tag, w / total * 100) for tag, w in weights.items()),
        key=lambda kv: (-kv[1], kv[0]),
    )
