"""
Calendar grouping of recorded sets.

A "day" is the local calendar day of a set's timestamp and is the unit of
a session everywhere else in the package. Grouping here is raw: warm-up
and bonus sets are kept, filtering is the caller's concern.
"""

from collections import defaultdict
from datetime import date, timedelta

from .metrics import calculate_volume
from .models import DayGroup, WorkoutSet, local_day


def resolve_today(today: date | None) -> date:
    """Return today's local date unless one was injected."""
    return today if today is not None else date.today()


def _bucket(sets: list[WorkoutSet], key) -> dict[date, list[WorkoutSet]]:
    buckets: dict[date, list[WorkoutSet]] = defaultdict(list)
    for s in sets:
        buckets[key(s)].append(s)
    return buckets


def group_sets_by_day(sets: list[WorkoutSet]) -> list[DayGroup]:
    """
    Partition sets into calendar-day buckets.

    Args:
        sets: Sets for one exercise, any order

    Returns:
        DayGroups, most recent day first; sets within a day newest first
    """
    buckets = _bucket(sets, lambda s: local_day(s.timestamp))
    groups = []
    for day, day_sets in buckets.items():
        ordered = sorted(day_sets, key=lambda s: s.timestamp, reverse=True)
        groups.append(DayGroup(day=day, sets=tuple(ordered), volume=calculate_volume(ordered)))
    groups.sort(key=lambda g: g.day, reverse=True)
    return groups


def group_sets_by_week(sets: list[WorkoutSet]) -> list[tuple[date, list[WorkoutSet]]]:
    """Group sets by Monday-start week, most recent week first."""
    def week_start(s: WorkoutSet) -> date:
        d = local_day(s.timestamp)
        return d - timedelta(days=d.weekday())

    buckets = _bucket(sets, week_start)
    return sorted(buckets.items(), key=lambda kv: kv[0], reverse=True)


def group_sets_by_month(sets: list[WorkoutSet]) -> list[tuple[date, list[WorkoutSet]]]:
    """Group sets by calendar month (keyed by the 1st), most recent first."""
    buckets = _bucket(sets, lambda s: local_day(s.timestamp).replace(day=1))
    return sorted(buckets.items(), key=lambda kv: kv[0], reverse=True)


def sets_on_day(sets: list[WorkoutSet], day: date) -> list[WorkoutSet]:
    """All sets recorded on the given local day, in input order."""
    return [s for s in sets if local_day(s.timestamp) == day]


def split_today(
    sets: list[WorkoutSet],
    today: date | None = None,
) -> tuple[list[WorkoutSet], list[DayGroup]]:
    """
    Separate today's sets from earlier history in a single pass.

    Args:
        sets: Sets for one exercise
        today: Local date treated as "today" (default: the real today)

    Returns:
        (today's sets newest first, historic DayGroups most recent first)
    """
    today = resolve_today(today)
    todays: list[WorkoutSet] = []
    historic: list[WorkoutSet] = []
    for s in sets:
        (todays if local_day(s.timestamp) == today else historic).append(s)
    todays.sort(key=lambda s: s.timestamp, reverse=True)
    return todays, group_sets_by_day(historic)


def days_before(sets: list[WorkoutSet], today: date) -> list[tuple[date, list[WorkoutSet]]]:
    """
    Days strictly before today with their sets (chronological within a day).

    Returns:
        (day, sets) pairs, most recent day first
    """
    buckets = _bucket([s for s in sets if local_day(s.timestamp) < today], lambda s: local_day(s.timestamp))
    return [
        (day, sorted(day_sets, key=lambda s: s.timestamp))
        for day, day_sets in sorted(buckets.items(), key=lambda kv: kv[0], reverse=True)
    ]
