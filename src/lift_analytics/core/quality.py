"""
Session quality classification and baseline selection.

A day whose pattern suggests deleted sets (every set at a different weight
with few sets, or a large drop between adjacent rep counts) is flagged
incomplete so it is not trusted as a progression baseline.
"""

from datetime import date

from .config import BASELINE_WARNING, DEFAULT_CONFIG, AnalyticsConfig
from .grouping import days_before, resolve_today
from .models import BaselineResult, SessionQuality, WorkoutSet, working_sets


def assess_session_quality(
    sets: list[WorkoutSet],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> SessionQuality:
    """
    Classify one day's sets.

    Args:
        sets: Sets for one day (warm-up and bonus are ignored)
        config: Thresholds

    Returns:
        "insufficient" with fewer than min_sets_for_analysis working sets,
        "incomplete" when the pattern suggests missing sets, else "complete"
    """
    ws = working_sets(sets)
    if len(ws) < config.min_sets_for_analysis:
        return "insufficient"

    distinct_weights = {s.weight for s in ws}
    if len(distinct_weights) == len(ws) and len(ws) < config.distinct_weight_set_threshold:
        return "incomplete"

    reps = sorted((s.reps for s in ws), reverse=True)
    for higher, lower in zip(reps, reps[1:]):
        if higher - lower > config.max_rep_gap:
            return "incomplete"

    return "complete"


def find_baseline_session(
    sets: list[WorkoutSet],
    today: date | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> BaselineResult:
    """
    Pick the day to base progression targets on.

    Walks days strictly before today (only days with working sets), most
    recent first, and returns the first complete one as reliable. Failing
    that, the most recent such day is returned as unreliable unless it is
    insufficient. Earlier incomplete days are never used as a fallback.

    Args:
        sets: All sets for one exercise
        today: Local date treated as today
        config: Thresholds

    Returns:
        BaselineResult with status "reliable", "unreliable" or "none"
    """
    prior = [
        (day, working_sets(day_sets))
        for day, day_sets in days_before(sets, resolve_today(today))
    ]
    prior = [(day, ws) for day, ws in prior if ws]

    for day, ws in prior:
        if assess_session_quality(ws, config) == "complete":
            return BaselineResult(status="reliable", day=day, sets=tuple(ws), quality="complete")

    if prior:
        day, ws = prior[0]
        quality = assess_session_quality(ws, config)
        if quality != "insufficient":
            return BaselineResult(
                status="unreliable",
                day=day,
                sets=tuple(ws),
                quality=quality,
                warning=BASELINE_WARNING,
            )

    return BaselineResult(status="none")
