"""
Session-to-session progress comparison.

Compares two metrics summaries (normally today against the last completed
session). A comparison is only meaningful when both sessions have the same
exercise type and the last session moved some volume; otherwise callers
fall back to the zero-baseline helpers below.

Directions are strict >, <, == comparisons with no tolerance.
"""

import math
from dataclasses import dataclass
from datetime import date

from .grouping import resolve_today
from .metrics import calculate_volume, max_reps, max_weight, session_metrics
from .models import (
    BestDay,
    Direction,
    LastSession,
    ProgressComparison,
    SessionMetrics,
    WorkoutSet,
    local_day,
    working_sets,
)
from .sessions import last_completed_session, most_recent_today_set, today_session_metrics, today_sets


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def direction(today: float, last: float) -> Direction:
    """Strict directional indicator."""
    if today > last:
        return "up"
    if today < last:
        return "down"
    return "same"


def compare_sessions(today: SessionMetrics, last: SessionMetrics | None) -> ProgressComparison:
    """
    Compare today's metrics against the last session.

    percentage    = round(today.volume / last.volume × 100)
    gains_percent = round((today.volume − last.volume) / last.volume × 100)

    Args:
        today: Metrics for today's working sets
        last: Metrics for the last completed session, or None

    Returns:
        ProgressComparison; can_compare is False (and both percentages 0) when
        there is no last session, the exercise types differ, or last.volume == 0
    """
    if last is None:
        return ProgressComparison(0, 0, False, direction(today.volume, 0.0))

    moved = direction(today.volume, last.volume)
    if today.type != last.type or last.volume == 0:
        return ProgressComparison(0, 0, False, moved)

    percentage = round_half_away(today.volume / last.volume * 100)
    gains = round_half_away((today.volume - last.volume) / last.volume * 100)
    return ProgressComparison(percentage, gains, True, moved)


# ---------------------------------------------------------------------------
# Zero-baseline fallbacks
# ---------------------------------------------------------------------------


def progress_ratio(today_volume: float, last_volume: float | None) -> float:
    """
    Unclamped today/last ratio.

    With no baseline the ratio is 1.0 once anything was lifted, else 0.0.
    """
    last = last_volume or 0.0
    if last == 0:
        return 1.0 if today_volume > 0 else 0.0
    return today_volume / last


def progress_bar_ratio(today_volume: float, last_volume: float | None) -> float:
    """progress_ratio clamped to 1.0."""
    return min(progress_ratio(today_volume, last_volume), 1.0)


def percent_of_last(today_volume: float, last_volume: float | None) -> int:
    """Percentage of last session's volume; may exceed 100."""
    return round_half_away(progress_ratio(today_volume, last_volume) * 100)


def absolute_gains_percent(today_volume: float, last_volume: float | None) -> int:
    """Gain over last session in percent; 100 from a zero baseline once anything was lifted."""
    last = last_volume or 0.0
    if last == 0:
        return 100 if today_volume > 0 else 0
    return round_half_away((today_volume - last) / last * 100)


def reps_difference(today_total: int, last_total: int) -> tuple[int, str] | None:
    """
    Reps still to go ("left") or already beyond ("more") last session's total.

    Returns:
        (amount, label), or None when nothing was done today or totals match
    """
    if today_total <= 0:
        return None
    diff = today_total - last_total
    if diff > 0:
        return diff, "more"
    if diff < 0:
        return -diff, "left"
    return None


# ---------------------------------------------------------------------------
# Indicators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Indicators:
    """Weight, reps and volume deltas with their directions."""

    weight_delta: float
    reps_delta: int
    volume_delta: float
    weight_direction: Direction
    reps_direction: Direction
    volume_direction: Direction


def _indicators(weight: float, reps: int, volume: float, ref_weight: float, ref_reps: int, ref_volume: float) -> Indicators:
    return Indicators(
        weight_delta=weight - ref_weight,
        reps_delta=reps - ref_reps,
        volume_delta=volume - ref_volume,
        weight_direction=direction(weight, ref_weight),
        reps_direction=direction(reps, ref_reps),
        volume_direction=direction(volume, ref_volume),
    )


def last_mode_indicators(
    newest_set: WorkoutSet,
    today_volume: float,
    last: SessionMetrics | None,
) -> Indicators:
    """
    Today's newest set and volume against last session's best.

    Missing history is compared against a 0/0/0 baseline so the first
    session shows absolute improvement.
    """
    return _indicators(
        newest_set.weight,
        newest_set.reps,
        today_volume,
        last.max_weight if last else 0.0,
        last.max_weight_reps if last else 0,
        last.volume if last else 0.0,
    )


def best_mode_indicators(todays: list[WorkoutSet], best: BestDay | None) -> Indicators | None:
    """
    Today's max weight, max reps and volume against the best day ever.

    Returns:
        Indicators, or None when no set was recorded today
    """
    if not todays:
        return None
    return _indicators(
        max_weight(todays),
        max_reps(todays),
        calculate_volume(todays),
        best.max_weight if best else 0.0,
        best.reps_at_max_weight if best else 0,
        best.total_volume if best else 0.0,
    )


@dataclass(frozen=True)
class RecentProgress:
    """Deltas between the two most recent sessions."""

    recent_day: date
    previous_day: date
    indicators: Indicators
    is_weighted: bool


def recent_progress(sets: list[WorkoutSet]) -> RecentProgress | None:
    """
    Compare the two most recent days that have working sets.

    Returns:
        RecentProgress, or None with fewer than two sessions
    """
    by_day: dict[date, list[WorkoutSet]] = {}
    for s in working_sets(sets):
        by_day.setdefault(local_day(s.timestamp), []).append(s)
    if len(by_day) < 2:
        return None
    recent_day, previous_day = sorted(by_day, reverse=True)[:2]
    recent, previous = by_day[recent_day], by_day[previous_day]
    return RecentProgress(
        recent_day=recent_day,
        previous_day=previous_day,
        indicators=_indicators(
            max_weight(recent),
            max_reps(recent),
            calculate_volume(recent),
            max_weight(previous),
            max_reps(previous),
            calculate_volume(previous),
        ),
        is_weighted=max_weight(recent) > 0,
    )


# ---------------------------------------------------------------------------
# Progress state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProgressState:
    """Everything needed to show today's progress against the last session."""

    today: SessionMetrics | None
    last: LastSession | None
    comparison: ProgressComparison
    percent_of_last: int
    gains_percent: int
    progress_ratio: float
    progress_bar_ratio: float
    type_changed: bool
    indicators: Indicators | None


def build_progress_state(sets: list[WorkoutSet], today: date | None = None) -> ProgressState:
    """
    Assemble today's progress view.

    When the sessions are comparable the comparator's percentages are used;
    otherwise the zero-baseline fallbacks fill in.
    """
    day = resolve_today(today)
    today_m = today_session_metrics(sets, day)
    last = last_completed_session(sets, day)
    last_m = last.metrics if last else None

    comparison = compare_sessions(today_m or session_metrics([], day=day), last_m)
    today_volume = today_m.volume if today_m else 0.0
    last_volume = last_m.volume if last_m else None

    if comparison.can_compare:
        percent = comparison.percentage
        gains = comparison.gains_percent
    else:
        percent = percent_of_last(today_volume, last_volume)
        gains = absolute_gains_percent(today_volume, last_volume)

    type_changed = False
    if today_m is not None and last_m is not None and today_m.type != last_m.type:
        today_loaded = today_m.volume > 0 and today_m.type != "reps_only"
        last_loaded = last_m.volume > 0 and last_m.type != "reps_only"
        type_changed = today_loaded != last_loaded

    newest = most_recent_today_set(sets, day)
    indicators = last_mode_indicators(newest, today_volume, last_m) if newest else None

    return ProgressState(
        today=today_m,
        last=last,
        comparison=comparison,
        percent_of_last=percent,
        gains_percent=gains,
        progress_ratio=progress_ratio(today_volume, last_volume),
        progress_bar_ratio=progress_bar_ratio(today_volume, last_volume),
        type_changed=type_changed,
        indicators=indicators,
    )


def todays_best_mode(sets: list[WorkoutSet], best: BestDay | None, today: date | None = None) -> Indicators | None:
    """best_mode_indicators over today's working sets."""
    return best_mode_indicators(working_sets(today_sets(sets, today)), best)
