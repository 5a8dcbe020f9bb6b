"""
Data models for lift-analytics.

All core dataclasses representing recorded sets, exercises, and the
read-only views derived from them. Derived views are frozen; recorded
sets and exercises are mutable because the engine edits them in place.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from .errors import SetValidationError

ExerciseType = Literal["weight_only", "reps_only", "combined"]
Direction = Literal["up", "down", "same"]
SessionQuality = Literal["complete", "incomplete", "insufficient"]
BaselineStatus = Literal["reliable", "unreliable", "none"]
ProgressionPath = Literal["reps", "weight"]
ProgressionStatus = Literal["valid", "unreliable", "insufficient"]


def _new_id() -> str:
    return uuid.uuid4().hex


def validate_set_values(weight: float, reps: int, tempo_seconds: int = 0) -> None:
    """
    Check the recorded-set invariant.

    weight is a finite number >= 0, reps is a whole number >= 0, and at
    least one of them is positive.

    Raises:
        SetValidationError: If the values cannot describe a real set
    """
    details = {"weight": weight, "reps": reps}
    if not math.isfinite(weight):
        raise SetValidationError(f"weight must be a finite number, got {weight}", details)
    if not math.isfinite(reps) or reps != int(reps):
        raise SetValidationError(f"reps must be a whole number, got {reps}", details)
    if weight < 0:
        raise SetValidationError(f"weight must be non-negative, got {weight}", details)
    if reps < 0:
        raise SetValidationError(f"reps must be non-negative, got {reps}", details)
    if weight == 0 and reps == 0:
        raise SetValidationError("a set needs weight > 0 or reps > 0", details)
    if tempo_seconds < 0:
        raise SetValidationError(
            f"tempo_seconds must be non-negative, got {tempo_seconds}",
            {"tempo_seconds": tempo_seconds},
        )


def to_local_naive(ts: datetime) -> datetime:
    """Express a timestamp as naive local time; naive input is returned as is."""
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def local_day(ts: datetime) -> date:
    """Calendar day of a timestamp in local time (naive timestamps are already local)."""
    if ts.tzinfo is not None:
        return ts.astimezone().date()
    return ts.date()


@dataclass
class WorkoutSet:
    """
    A single recorded set.

    is_pb and rest_seconds are derived fields written only by the PR engine
    and rest-time capture. rest_seconds describes the rest taken *after*
    this set, measured by the arrival of the next one.
    """

    weight: float
    reps: int
    timestamp: datetime
    exercise_id: str = ""
    is_warm_up: bool = False
    is_bonus: bool = False
    is_drop_set: bool = False
    is_assisted: bool = False
    is_pause_at_top: bool = False
    is_timed_set: bool = False
    tempo_seconds: int = 0
    is_pb: bool = False
    rest_seconds: int | None = None
    set_id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        """Validate set data."""
        validate_set_values(self.weight, self.reps, self.tempo_seconds)
        self.timestamp = to_local_naive(self.timestamp)
        if self.rest_seconds is not None and self.rest_seconds < 0:
            raise SetValidationError("rest_seconds must be non-negative")

    @property
    def day(self) -> date:
        """Local calendar day this set belongs to."""
        return local_day(self.timestamp)

    def is_working(self, include_bonus: bool = False) -> bool:
        """
        True if this set counts towards analytics.

        Warm-ups never count. Bonus sets count only when include_bonus is set.
        """
        if self.is_warm_up:
            return False
        return include_bonus or not self.is_bonus

    @property
    def set_type_label(self) -> str | None:
        """Short label for the set's technique flag, None for a plain working set."""
        if self.is_warm_up:
            return "warm-up"
        if self.is_bonus:
            return "bonus"
        if self.is_drop_set:
            return "drop set"
        if self.is_assisted:
            return "assisted"
        if self.is_timed_set:
            return f"timed {self.tempo_seconds}s" if self.tempo_seconds else "timed"
        if self.is_pause_at_top:
            return "pause"
        return None


def working_sets(sets: list[WorkoutSet], include_bonus: bool = False) -> list[WorkoutSet]:
    """Filter to sets that count towards analytics (see WorkoutSet.is_working)."""
    return [s for s in sets if s.is_working(include_bonus)]


@dataclass
class Exercise:
    """
    An exercise owning a collection of sets.

    Sets are stored separately, keyed by exercise_id; deleting an exercise
    deletes its sets, deleting a set never deletes the exercise.
    """

    name: str
    tags: frozenset[str] = frozenset()
    note: str | None = None
    exercise_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    last_updated: datetime | None = None

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.name or not self.name.strip():
            raise SetValidationError("exercise name must not be empty")
        self.tags = frozenset(t.strip() for t in self.tags if t and t.strip())
        if self.last_updated is None:
            self.last_updated = self.created_at

    def bump_updated(self, when: datetime) -> None:
        """Record activity on this exercise."""
        if self.last_updated is None or when > self.last_updated:
            self.last_updated = when

    @staticmethod
    def last_workout_date(sets: list[WorkoutSet]) -> datetime | None:
        """Timestamp of the most recent set, or None if there are none."""
        return max((s.timestamp for s in sets), default=None)

    @staticmethod
    def was_worked_out_today(sets: list[WorkoutSet], today: date) -> bool:
        """True if any set was recorded on the given day."""
        return any(s.day == today for s in sets)


# =============================================================================
# DERIVED VIEWS
# =============================================================================


@dataclass(frozen=True)
class DayGroup:
    """All sets for one exercise on one local calendar day, newest first."""

    day: date
    sets: tuple[WorkoutSet, ...]
    volume: float


@dataclass(frozen=True)
class SessionMetrics:
    """
    Single-pass summary of a set collection.

    max_weight_reps is the best rep count *at* max_weight, not the global
    max reps.
    """

    type: ExerciseType
    volume: float
    max_weight: float
    max_weight_reps: int
    set_count: int
    total_reps: int
    day: date | None = None


@dataclass(frozen=True)
class PersonalRecord:
    """The all-time best working set of an exercise."""

    weight: float
    reps: int
    timestamp: datetime
    is_bodyweight: bool
    set_id: str


@dataclass(frozen=True)
class BestDay:
    """
    The best calendar day ever for an exercise.

    For weighted exercises: the day holding the max single-set weight with
    the highest day volume. For bodyweight: the day with the most reps.
    """

    day: date
    max_weight: float
    reps_at_max_weight: int
    total_volume: float
    total_reps: int
    is_bodyweight: bool


@dataclass(frozen=True)
class LastSession:
    """Most recent completed day before today, with the flags of its best set."""

    day: date
    sets: tuple[WorkoutSet, ...]
    metrics: SessionMetrics
    is_drop_set: bool = False
    is_pause_at_top: bool = False
    is_timed_set: bool = False
    tempo_seconds: int = 0
    is_pb: bool = False


@dataclass(frozen=True)
class WeightGroup:
    """Sets at one weight within a session, rep counts in chronological order."""

    weight: float
    reps: tuple[int, ...]

    @property
    def set_count(self) -> int:
        return len(self.reps)


@dataclass(frozen=True)
class ProgressComparison:
    """Result of comparing today's metrics against the last session."""

    percentage: int
    gains_percent: int
    can_compare: bool
    direction: Direction


@dataclass(frozen=True)
class BaselineResult:
    """Outcome of the baseline-session search."""

    status: BaselineStatus
    day: date | None = None
    sets: tuple[WorkoutSet, ...] = ()
    quality: SessionQuality | None = None
    warning: str | None = None

    @property
    def is_reliable(self) -> bool:
        return self.status == "reliable"


@dataclass(frozen=True)
class BaselineSummary:
    """What the baseline day looked like: set count, primary weight and rep pattern."""

    set_count: int
    primary_weight: float
    rep_pattern: tuple[int, ...]


@dataclass(frozen=True)
class RepProgression:
    weight: float
    target_reps: tuple[int, ...]
    total_reps_gain: int


@dataclass(frozen=True)
class WeightProgression:
    weight: float
    target_reps: tuple[int, ...]
    weight_increase: float


@dataclass(frozen=True)
class ProgressionTargets:
    """Two candidate plans for the next session plus the recommended one."""

    baseline: BaselineSummary
    rep_progression: RepProgression
    weight_progression: WeightProgression
    recommended_path: ProgressionPath


@dataclass(frozen=True)
class ProgressionResult:
    """Targets together with how trustworthy the baseline behind them is."""

    status: ProgressionStatus
    targets: ProgressionTargets | None = None
    warning: str | None = None
    message: str | None = None
    baseline_day: date | None = None

    @property
    def has_warning(self) -> bool:
        return self.warning is not None
