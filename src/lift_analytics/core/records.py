"""
Personal-record detection.

At most one working set per exercise carries is_pb. The winner is the
working set that is greatest on (weight, reps), ties going to the earliest
timestamp. For bodyweight exercises every weight is 0, so the ordering
degrades to reps alone without special-casing.

The flag is never patched incrementally: recompute_personal_records clears
every flag and re-derives the winner from the full collection, so the
result is correct regardless of how many sets were mutated out of order.
"""

from datetime import datetime

from .models import PersonalRecord, WorkoutSet, working_sets


def pr_sort_key(s: WorkoutSet) -> tuple[float, int, datetime]:
    """
    Sort key under which the PR holder is the minimum.

    Heavier first, then more reps, then earlier timestamp.
    """
    return (-s.weight, -s.reps, s.timestamp)


def find_personal_record_set(sets: list[WorkoutSet]) -> WorkoutSet | None:
    """
    Find the PR-holding set without touching any flags.

    Args:
        sets: All sets for one exercise (warm-up and bonus are ignored)

    Returns:
        The winning working set, or None if there are no working sets
    """
    candidates = working_sets(sets)
    if not candidates:
        return None
    return min(candidates, key=pr_sort_key)


def recompute_personal_records(sets: list[WorkoutSet]) -> WorkoutSet | None:
    """
    Clear every is_pb flag and flag the single winner.

    Runs in O(n) over the exercise's sets. Must be given the *complete*
    collection for one exercise, otherwise a stale flag can survive.

    Args:
        sets: All sets for one exercise

    Returns:
        The set now holding the PR, or None
    """
    for s in sets:
        s.is_pb = False
    winner = find_personal_record_set(sets)
    if winner is not None:
        winner.is_pb = True
    return winner


def pb_flags(sets: list[WorkoutSet]) -> dict[str, bool]:
    """Snapshot of is_pb by set_id."""
    return {s.set_id: s.is_pb for s in sets}


def changed_pb_flags(before: dict[str, bool], sets: list[WorkoutSet]) -> list[WorkoutSet]:
    """
    Sets whose is_pb flag differs from a previous snapshot.

    Args:
        before: Result of pb_flags() taken before the recompute
        sets: The same sets after the recompute

    Returns:
        Sets that need to be written back
    """
    return [s for s in sets if before.get(s.set_id, False) != s.is_pb]


def personal_record(sets: list[WorkoutSet]) -> PersonalRecord | None:
    """
    Read-only view of the current personal record.

    Derived from the data rather than from cached flags, so it agrees with
    recompute_personal_records even on a collection that was never flagged.
    """
    best = find_personal_record_set(sets)
    if best is None:
        return None
    bodyweight = all(s.weight == 0 for s in working_sets(sets))
    return PersonalRecord(
        weight=best.weight,
        reps=best.reps,
        timestamp=best.timestamp,
        is_bodyweight=bodyweight,
        set_id=best.set_id,
    )


def flagged_personal_records(sets: list[WorkoutSet]) -> list[WorkoutSet]:
    """Sets currently carrying is_pb (at most one after a recompute)."""
    return [s for s in sets if s.is_pb]
