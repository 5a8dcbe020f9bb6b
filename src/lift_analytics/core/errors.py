"""
Exception hierarchy for lift-analytics.

Validation failures are raised before any state is touched; store failures
are raised after the engine has restored its in-memory view. Empty inputs
(no sets, no prior day, no baseline) are never errors.
"""

from typing import Any


class LiftAnalyticsError(Exception):
    """
    Base exception for all lift-analytics errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SetValidationError(LiftAnalyticsError, ValueError):
    """A proposed set or exercise violates a data-model invariant."""


class UnknownExerciseError(LiftAnalyticsError, LookupError):
    """No exercise with the given id exists."""

    def __init__(self, exercise_id: str) -> None:
        super().__init__(f"Unknown exercise: {exercise_id}", {"exercise_id": exercise_id})


class UnknownSetError(LiftAnalyticsError, LookupError):
    """No set with the given id exists for the exercise."""

    def __init__(self, set_id: str, exercise_id: str | None = None) -> None:
        super().__init__(
            f"Unknown set: {set_id}",
            {"set_id": set_id, "exercise_id": exercise_id},
        )


class StoreWriteError(LiftAnalyticsError):
    """The record store failed to commit; the logical operation did not happen."""
