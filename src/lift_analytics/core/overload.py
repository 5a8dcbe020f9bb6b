"""
Progressive-overload target generation.

Given a baseline day, proposes two plans for the next session: add reps at
the same weight, or add one plate increment at the same rep pattern. The
recommendation is a fixed rep-range heuristic:

    average reps < 6   -> reps
    average reps > 12  -> weight
    otherwise          -> reps
"""

from datetime import date

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .models import (
    BaselineSummary,
    ProgressionPath,
    ProgressionResult,
    ProgressionTargets,
    RepProgression,
    WeightProgression,
    WorkoutSet,
)
from .quality import find_baseline_session


def primary_weight(sets: list[WorkoutSet]) -> float | None:
    """
    The weight used by the most sets, ties broken by first appearance.

    Args:
        sets: Baseline sets in chronological order

    Returns:
        Primary weight, or None for an empty input
    """
    counts: dict[float, int] = {}
    for s in sets:
        counts[s.weight] = counts.get(s.weight, 0) + 1
    if not counts:
        return None
    # dicts keep insertion order, so max() returns the first-seen weight on ties
    return max(counts, key=lambda w: counts[w])


def rep_progression(
    weight: float,
    reps: list[int],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> RepProgression:
    """
    Add reps at the same weight.

    +2 total when the pattern has at most conservative_set_count sets,
    otherwise +1. The first set takes up to max_rep_increase_first_set and
    any remainder goes +1 to each following set in order.
    """
    increase = 2 if len(reps) <= config.conservative_set_count else 1
    target = list(reps)
    if target:
        first = min(increase, config.max_rep_increase_first_set)
        target[0] += first
        remaining = increase - first
        for i in range(1, len(target)):
            if remaining <= 0:
                break
            target[i] += 1
            remaining -= 1
    return RepProgression(
        weight=weight,
        target_reps=tuple(target),
        total_reps_gain=sum(target) - sum(reps),
    )


def weight_progression(
    weight: float,
    reps: list[int],
    increment: float | None = None,
) -> WeightProgression:
    """Add one plate increment at the same rep pattern."""
    if increment is None:
        increment = DEFAULT_CONFIG.weight_increment_kg
    return WeightProgression(weight=weight + increment, target_reps=tuple(reps), weight_increase=increment)


def recommend_path(reps: list[int], config: AnalyticsConfig = DEFAULT_CONFIG) -> ProgressionPath:
    """Pick reps or weight from the average rep count."""
    if not reps:
        return "reps"
    average = sum(reps) / len(reps)
    if average < config.low_rep_threshold:
        return "reps"
    if average > config.high_rep_threshold:
        return "weight"
    return "reps"


def generate_targets(
    baseline_sets: list[WorkoutSet],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> ProgressionTargets | None:
    """
    Build both plans from a baseline day.

    Args:
        baseline_sets: The baseline day's working sets, any order
        config: Thresholds and plate increment

    Returns:
        ProgressionTargets, or None when there is nothing to build from
    """
    chronological = sorted(baseline_sets, key=lambda s: s.timestamp)
    weight = primary_weight(chronological)
    if weight is None:
        return None
    pattern = [s.reps for s in chronological if s.weight == weight]

    return ProgressionTargets(
        baseline=BaselineSummary(
            set_count=len(chronological),
            primary_weight=weight,
            rep_pattern=tuple(pattern),
        ),
        rep_progression=rep_progression(weight, pattern, config),
        weight_progression=weight_progression(weight, pattern, config.weight_increment_kg),
        recommended_path=recommend_path(pattern, config),
    )


def progression_targets(
    sets: list[WorkoutSet],
    today: date | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> ProgressionResult:
    """
    Select a baseline and generate targets from it.

    Args:
        sets: All sets for one exercise
        today: Local date treated as today
        config: Thresholds

    Returns:
        ProgressionResult with status "valid", "unreliable" or "insufficient"
    """
    baseline = find_baseline_session(sets, today, config)

    if baseline.status == "none":
        return ProgressionResult(status="insufficient", message="Not enough history for a baseline day")

    targets = generate_targets(list(baseline.sets), config)

    if baseline.status == "reliable":
        if targets is None:
            return ProgressionResult(status="insufficient", message="Unable to calculate progression")
        return ProgressionResult(status="valid", targets=targets, baseline_day=baseline.day)

    return ProgressionResult(
        status="unreliable",
        targets=targets,
        warning=baseline.warning,
        baseline_day=baseline.day,
    )
