"""Workout-set analytics: personal records, progress and overload targets."""

__version__ = "0.1.0"
