"""
Rest-time capture.

A set's rest_seconds is the rest taken *after* it. It is written onto the
previous set when the next set arrives, or forced to the cap when a live
countdown expires with no following set yet.
"""

from datetime import datetime

from .config import REST_CAP_SECONDS
from .models import WorkoutSet


def elapsed_rest_seconds(
    previous: WorkoutSet,
    new_timestamp: datetime,
    cap: int = REST_CAP_SECONDS,
) -> int:
    """
    Seconds between two sets, clamped to [0, cap].

    Args:
        previous: The set recorded before the new one
        new_timestamp: Timestamp of the arriving set
        cap: Upper bound in seconds

    Returns:
        Whole seconds elapsed
    """
    elapsed = int((new_timestamp - previous.timestamp).total_seconds())
    return max(0, min(cap, elapsed))


def capture_rest_time(
    previous: WorkoutSet | None,
    new_set: WorkoutSet,
    cap: int = REST_CAP_SECONDS,
) -> WorkoutSet | None:
    """
    Back-fill the previous set's rest from the arrival of a new set.

    Args:
        previous: Most recent set before new_set for the same exercise, or None
        new_set: The set being inserted (left untouched)
        cap: Upper bound in seconds

    Returns:
        The set that was modified, or None when there is no previous set
    """
    if previous is None:
        return None
    previous.rest_seconds = elapsed_rest_seconds(previous, new_set.timestamp, cap)
    return previous


def expire_rest_time(s: WorkoutSet, cap: int = REST_CAP_SECONDS) -> bool:
    """
    Force the rest after a set to the cap when its countdown runs out.

    A rest already captured from a following set is kept.

    Returns:
        True if the set was modified
    """
    if s.rest_seconds is not None:
        return False
    s.rest_seconds = cap
    return True
