"""
Session and best-day aggregators.

Builds "today", "last completed session" and "best day ever" views on top
of the day grouper and the metrics calculator. Nothing is cached: every
call recomputes from the set collection it is given, so the today view
tracks new sets live and never leaks across a day boundary.
"""

from datetime import date

from .grouping import days_before, resolve_today, sets_on_day
from .metrics import calculate_volume, max_weight, session_metrics, total_reps
from .models import BestDay, LastSession, SessionMetrics, WeightGroup, WorkoutSet, local_day, working_sets
from .records import pr_sort_key

# ---------------------------------------------------------------------------
# Today
# ---------------------------------------------------------------------------


def today_sets(sets: list[WorkoutSet], today: date | None = None) -> list[WorkoutSet]:
    """All of today's sets (including warm-up and bonus), newest first."""
    day = resolve_today(today)
    return sorted(sets_on_day(sets, day), key=lambda s: s.timestamp, reverse=True)


def today_session_metrics(sets: list[WorkoutSet], today: date | None = None) -> SessionMetrics | None:
    """
    Metrics for today's working sets.

    Args:
        sets: All sets for one exercise
        today: Local date treated as today

    Returns:
        SessionMetrics, or None when no working set was recorded today
    """
    day = resolve_today(today)
    ws = working_sets(sets_on_day(sets, day))
    if not ws:
        return None
    return session_metrics(ws, day=day)


def most_recent_today_set(sets: list[WorkoutSet], today: date | None = None) -> WorkoutSet | None:
    """Today's newest working set, or None."""
    ws = working_sets(today_sets(sets, today))
    return ws[0] if ws else None


# ---------------------------------------------------------------------------
# Last completed session
# ---------------------------------------------------------------------------


def last_completed_session(sets: list[WorkoutSet], today: date | None = None) -> LastSession | None:
    """
    The most recent day strictly before today that has a working set.

    Args:
        sets: All sets for one exercise
        today: Local date treated as today

    Returns:
        LastSession with that day's working sets and metrics, or None
    """
    day_ = resolve_today(today)
    for day, day_sets in days_before(sets, day_):
        ws = working_sets(day_sets)
        if not ws:
            continue
        top = max_weight(ws)
        best = min((s for s in ws if s.weight == top), key=pr_sort_key)
        return LastSession(
            day=day,
            sets=tuple(ws),
            metrics=session_metrics(ws, day=day),
            is_drop_set=best.is_drop_set,
            is_pause_at_top=best.is_pause_at_top,
            is_timed_set=best.is_timed_set,
            tempo_seconds=best.tempo_seconds,
            is_pb=best.is_pb,
        )
    return None


def last_session_breakdown(sets: list[WorkoutSet], today: date | None = None) -> list[WeightGroup] | None:
    """
    Last session's working sets grouped by weight.

    Groups are ordered by the first appearance of each weight; rep counts
    within a group are chronological.

    Returns:
        WeightGroups, or None when there is no previous session
    """
    last = last_completed_session(sets, today)
    if last is None:
        return None
    order: list[float] = []
    reps_by_weight: dict[float, list[int]] = {}
    for s in last.sets:
        if s.weight not in reps_by_weight:
            order.append(s.weight)
            reps_by_weight[s.weight] = []
        reps_by_weight[s.weight].append(s.reps)
    return [WeightGroup(weight=w, reps=tuple(reps_by_weight[w])) for w in order]


def _reps_only_days(sets: list[WorkoutSet], today: date) -> list[tuple[date, list[WorkoutSet]]]:
    days = []
    for day, day_sets in days_before(sets, today):
        ws = working_sets(day_sets)
        if ws and all(s.weight == 0 for s in ws):
            days.append((day, ws))
    return days


def last_session_total_reps(sets: list[WorkoutSet], today: date | None = None) -> int:
    """Total reps on the most recent reps-only day before today, or 0."""
    days = _reps_only_days(sets, resolve_today(today))
    return total_reps(days[0][1]) if days else 0


def best_session_total_reps(sets: list[WorkoutSet], today: date | None = None) -> int:
    """Highest total reps on any reps-only day before today, or 0."""
    days = _reps_only_days(sets, resolve_today(today))
    return max((total_reps(ws) for _, ws in days), default=0)


# ---------------------------------------------------------------------------
# Best day ever
# ---------------------------------------------------------------------------


def best_day(sets: list[WorkoutSet]) -> BestDay | None:
    """
    The best calendar day ever, today included.

    Two-level comparison. Weighted exercises: keep the days that contain
    the all-time max single-set weight, then rank them by total day volume.
    Bodyweight exercises (every working weight is 0): rank all days by total
    reps. Ties go to the earliest day.

    Args:
        sets: All sets for one exercise

    Returns:
        BestDay, or None when there are no working sets
    """
    ws = working_sets(sets)
    if not ws:
        return None

    by_day: dict[date, list[WorkoutSet]] = {}
    for s in ws:
        by_day.setdefault(local_day(s.timestamp), []).append(s)

    bodyweight = all(s.weight == 0 for s in ws)

    if bodyweight:
        candidates = sorted(by_day)
        chosen = max(candidates, key=lambda d: (total_reps(by_day[d]), -d.toordinal()))
        day_sets = by_day[chosen]
        return BestDay(
            day=chosen,
            max_weight=0.0,
            reps_at_max_weight=max(s.reps for s in day_sets),
            total_volume=calculate_volume(day_sets),
            total_reps=total_reps(day_sets),
            is_bodyweight=True,
        )

    top_weight = max(s.weight for s in ws)
    candidates = sorted(d for d, day_sets in by_day.items() if any(s.weight == top_weight for s in day_sets))
    chosen = max(candidates, key=lambda d: (calculate_volume(by_day[d]), -d.toordinal()))
    day_sets = by_day[chosen]
    return BestDay(
        day=chosen,
        max_weight=top_weight,
        reps_at_max_weight=max(s.reps for s in day_sets if s.weight == top_weight),
        total_volume=calculate_volume(day_sets),
        total_reps=total_reps(day_sets),
        is_bodyweight=False,
    )
