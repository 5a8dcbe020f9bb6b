"""
Pure metric computation functions.

All functions are pure and typed for testability.

Volume uses one canonical accumulator everywhere: a set contributes
weight × reps only when both are positive. Weight-only and reps-only sets
add nothing to volume; bodyweight work is tracked through total reps.
"""

from datetime import date
from typing import Iterable

from .config import SESSION_TAIL_SECONDS
from .models import ExerciseType, SessionMetrics, WorkoutSet, working_sets


def set_volume(s: WorkoutSet) -> float:
    """
    Volume contribution of one set under the canonical accumulator.

    Args:
        s: Recorded set

    Returns:
        weight × reps when both are positive, else 0.0
    """
    if s.weight > 0 and s.reps > 0:
        return s.weight * s.reps
    return 0.0


def classify_pairs(pairs: Iterable[tuple[bool, bool]]) -> ExerciseType:
    """
    Infer the exercise type from (weight > 0, reps > 0) pairs.

    weight_only: some weight, no reps anywhere.
    reps_only:   some reps, no weight anywhere.
    combined:    both present, or neither (safe default for empty input).
    """
    has_weight = False
    has_reps = False
    for w, r in pairs:
        has_weight = has_weight or w
        has_reps = has_reps or r
    if has_weight and not has_reps:
        return "weight_only"
    if has_reps and not has_weight:
        return "reps_only"
    return "combined"


def classify_exercise_type(sets: list[WorkoutSet], include_bonus: bool = False) -> ExerciseType:
    """Infer the exercise type from the working subset of sets."""
    return classify_pairs((s.weight > 0, s.reps > 0) for s in working_sets(sets, include_bonus))


def calculate_volume(sets: list[WorkoutSet], include_bonus: bool = False) -> float:
    """
    Total canonical volume over the working subset.

    Args:
        sets: Any set collection (warm-ups are skipped)
        include_bonus: Count bonus sets as working sets

    Returns:
        Sum of weight × reps over sets where both are positive
    """
    return sum(set_volume(s) for s in working_sets(sets, include_bonus))


def session_metrics(
    sets: list[WorkoutSet],
    day: date | None = None,
    include_bonus: bool = False,
) -> SessionMetrics:
    """
    Summarize a set collection in a single pass.

    Warm-ups (and bonus sets unless include_bonus) are skipped. Max weight
    is tracked weight-first, then the best reps at that weight.

    Args:
        sets: Sets for one day (or any collection)
        day: Day the collection belongs to, carried through for display
        include_bonus: Count bonus sets as working sets

    Returns:
        SessionMetrics; a zeroed "combined" result when nothing qualifies
    """
    has_weight = False
    has_reps = False
    volume = 0.0
    max_weight = 0.0
    max_weight_reps = 0
    set_count = 0
    reps_total = 0

    for s in sets:
        if not s.is_working(include_bonus):
            continue

        set_count += 1
        reps_total += s.reps
        has_weight = has_weight or s.weight > 0
        has_reps = has_reps or s.reps > 0

        if s.weight > max_weight:
            max_weight = s.weight
            max_weight_reps = s.reps
        elif s.weight == max_weight and s.reps > max_weight_reps:
            max_weight_reps = s.reps

        volume += set_volume(s)

    return SessionMetrics(
        type=classify_pairs([(has_weight, has_reps)]),
        volume=volume,
        max_weight=max_weight,
        max_weight_reps=max_weight_reps,
        set_count=set_count,
        total_reps=reps_total,
        day=day,
    )


def total_reps(sets: list[WorkoutSet], include_bonus: bool = False) -> int:
    """Sum of reps over working sets."""
    return sum(s.reps for s in working_sets(sets, include_bonus))


def max_reps(sets: list[WorkoutSet], include_bonus: bool = False) -> int:
    """Highest single-set rep count over working sets, or 0."""
    return max((s.reps for s in working_sets(sets, include_bonus)), default=0)


def max_weight(sets: list[WorkoutSet], include_bonus: bool = False) -> float:
    """Heaviest single-set weight over working sets, or 0.0."""
    return max((s.weight for s in working_sets(sets, include_bonus)), default=0.0)


def is_bodyweight(sets: list[WorkoutSet], include_bonus: bool = False) -> bool:
    """True if every working set is unloaded (an empty input is not bodyweight)."""
    ws = working_sets(sets, include_bonus)
    return bool(ws) and all(s.weight == 0 for s in ws)


def average_rest_seconds(sets: list[WorkoutSet]) -> int | None:
    """
    Average captured rest time.

    Args:
        sets: Any set collection; sets without a captured rest are ignored

    Returns:
        Integer mean in seconds, or None if nothing was captured
    """
    rests = [s.rest_seconds for s in sets if s.rest_seconds is not None]
    if not rests:
        return None
    return sum(rests) // len(rests)


def session_duration_minutes(
    sets: list[WorkoutSet],
    tail_seconds: int = SESSION_TAIL_SECONDS,
) -> int | None:
    """
    Session duration: first set to last set plus the rest after the last set.

    Args:
        sets: Sets for one day
        tail_seconds: Rest assumed after the final set

    Returns:
        Whole minutes (minimum 1), or None for an empty input
    """
    if not sets:
        return None
    first = min(s.timestamp for s in sets)
    last = max(s.timestamp for s in sets)
    duration = (last - first).total_seconds() + tail_seconds
    return max(1, int(duration // 60))
