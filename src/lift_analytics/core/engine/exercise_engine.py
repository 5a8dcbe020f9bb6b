"""
Exercise engine: the only writer of recorded sets.

Every public mutation is one unit: validate, apply the record change,
recapture rest time, recompute the personal record, then commit through
the store. A failed commit rolls the in-memory objects back to their last
committed values, so readers never observe a half-applied mutation.

Mutations on one exercise are serialized by a per-exercise lock; different
exercises never contend.
"""

import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterator

from ...io.set_store import RecordStore
from ..config import AnalyticsConfig
from ..errors import SetValidationError, StoreWriteError, UnknownSetError
from ..models import Exercise, WorkoutSet, to_local_naive, validate_set_values
from ..records import changed_pb_flags, pb_flags, recompute_personal_records
from ..rest import capture_rest_time, expire_rest_time
from .config_loader import load_analytics_config

logger = logging.getLogger(__name__)

PrListener = Callable[[WorkoutSet], None]

# Fields that change which set holds the PR
_PR_FIELDS = frozenset({"weight", "reps", "is_warm_up", "is_bonus", "timestamp"})

_EDITABLE_FIELDS = frozenset(
    {
        "weight",
        "reps",
        "timestamp",
        "is_warm_up",
        "is_bonus",
        "is_drop_set",
        "is_assisted",
        "is_pause_at_top",
        "is_timed_set",
        "tempo_seconds",
    }
)


@dataclass(frozen=True)
class AddSetResult:
    """Outcome of adding a set."""

    workout_set: WorkoutSet
    is_new_pr: bool
    rest_captured_on: WorkoutSet | None


def _normalize_name(name: str) -> str:
    return name.strip().casefold()


class ExerciseEngine:
    """
    Coordinates set mutations with PR recompute and rest capture.

    Args:
        store: Record store collaborator
        config: Thresholds; loaded from YAML when omitted
        clock: Returns "now" for new sets (injectable for tests)
    """

    def __init__(
        self,
        store: RecordStore,
        config: AnalyticsConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.config = config if config is not None else load_analytics_config()
        self.clock = clock or datetime.now
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._pr_listeners: list[PrListener] = []

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _exercise(self, exercise_id: str) -> Exercise:
        return self.store.get_exercise(exercise_id)

    @contextlib.contextmanager
    def _transaction(self, exercise_id: str, operation: str) -> Iterator[list[WorkoutSet]]:
        """
        Run a mutation under the exercise lock and commit it.

        Yields the exercise's current sets. Their fields (and the exercise's
        own fields) are snapshotted first and restored if anything fails
        before the commit lands.
        """
        with self._lock_for(exercise_id):
            exercise = self._exercise(exercise_id)
            sets = self.store.fetch_sets(exercise_id)
            set_snapshot = [(s, dict(vars(s))) for s in sets]
            exercise_snapshot = dict(vars(exercise))
            try:
                yield sets
                self.store.save(exercise_id)
            except Exception as e:
                for s, fields in set_snapshot:
                    vars(s).update(fields)
                vars(exercise).update(exercise_snapshot)
                self.store.discard(exercise_id)
                if isinstance(e, StoreWriteError):
                    logger.warning("%s on exercise %s failed to commit: %s", operation, exercise_id, e)
                raise
            logger.debug("%s committed for exercise %s", operation, exercise_id)

    def _recompute_pr(self, sets: list[WorkoutSet]) -> WorkoutSet | None:
        before = pb_flags(sets)
        winner = recompute_personal_records(sets)
        for s in changed_pb_flags(before, sets):
            self.store.update(s)
        return winner

    def _check_unique_timestamp(self, sets: list[WorkoutSet], timestamp: datetime, ignore: WorkoutSet | None = None) -> None:
        for s in sets:
            if s is not ignore and s.timestamp == timestamp:
                raise SetValidationError(
                    "another set of this exercise already has this timestamp",
                    {"timestamp": timestamp.isoformat(), "set_id": s.set_id},
                )

    @staticmethod
    def _find(sets: list[WorkoutSet], set_id: str, exercise_id: str) -> WorkoutSet:
        for s in sets:
            if s.set_id == set_id:
                return s
        raise UnknownSetError(set_id, exercise_id)

    # ------------------------------------------------------------------
    # PR signal
    # ------------------------------------------------------------------

    def on_pr_achieved(self, callback: PrListener) -> None:
        """Register a callback fired when a newly added set becomes the PR."""
        self._pr_listeners.append(callback)

    def _emit_pr(self, s: WorkoutSet) -> None:
        logger.info("New personal record on %s: %s x %s", s.exercise_id, s.weight, s.reps)
        for callback in list(self._pr_listeners):
            callback(s)

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    def _check_unique_name(self, name: str, ignore_id: str | None = None) -> None:
        key = _normalize_name(name)
        for exercise in self.store.load_exercises():
            if exercise.exercise_id != ignore_id and _normalize_name(exercise.name) == key:
                raise SetValidationError(f"An exercise named {exercise.name!r} already exists", {"name": name})

    def add_exercise(self, name: str, tags: frozenset[str] | set[str] | None = None, note: str | None = None) -> Exercise:
        """
        Create an exercise.

        Raises:
            SetValidationError: If the name is empty or already taken
        """
        with self._locks_guard:
            exercise = Exercise(name=name.strip(), tags=frozenset(tags or ()), note=note, created_at=self.clock())
            self._check_unique_name(exercise.name)
            self.store.put_exercise(exercise)
            try:
                self.store.save(exercise.exercise_id)
            except StoreWriteError:
                logger.warning("Adding exercise %r failed to commit", exercise.name)
                raise
        logger.debug("Added exercise %s (%s)", exercise.exercise_id, exercise.name)
        return exercise

    def rename_exercise(self, exercise_id: str, name: str) -> Exercise:
        """
        Rename an exercise.

        Raises:
            UnknownExerciseError: If there is no such exercise
            SetValidationError: If the name is empty or already taken
        """
        if not name or not name.strip():
            raise SetValidationError("exercise name must not be empty")
        with self._locks_guard:
            self._check_unique_name(name, ignore_id=exercise_id)
        with self._transaction(exercise_id, "rename"):
            exercise = self._exercise(exercise_id)
            exercise.name = name.strip()
            self.store.put_exercise(exercise)
        return exercise

    def delete_exercise(self, exercise_id: str) -> None:
        """
        Delete an exercise and every one of its sets.

        Raises:
            UnknownExerciseError: If there is no such exercise
        """
        with self._transaction(exercise_id, "delete exercise"):
            self.store.remove_exercise(exercise_id)
        with self._locks_guard:
            self._locks.pop(exercise_id, None)

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def sets_for(self, exercise_id: str) -> list[WorkoutSet]:
        """
        All sets of an exercise, oldest first.

        Raises:
            UnknownExerciseError: If there is no such exercise
        """
        self._exercise(exercise_id)
        return self.store.fetch_sets(exercise_id)

    def add_set(
        self,
        exercise_id: str,
        weight: float,
        reps: int,
        timestamp: datetime | None = None,
        *,
        is_warm_up: bool = False,
        is_bonus: bool = False,
        is_drop_set: bool = False,
        is_assisted: bool = False,
        is_pause_at_top: bool = False,
        is_timed_set: bool = False,
        tempo_seconds: int = 0,
    ) -> AddSetResult:
        """
        Record a new set.

        Inserts the set, writes the elapsed rest onto the set recorded just
        before it, recomputes the personal record and commits. PR listeners
        are notified after the commit when the new set is the PR holder.

        Args:
            exercise_id: Owning exercise
            weight: kg, 0 for bodyweight
            reps: Repetitions, 0 for weight-only holds
            timestamp: When the set was done (default: clock())

        Returns:
            AddSetResult

        Raises:
            SetValidationError: If the values are invalid or the timestamp is taken
            UnknownExerciseError: If there is no such exercise
            StoreWriteError: If the commit fails (nothing is changed)
        """
        validate_set_values(weight, reps, tempo_seconds)
        new_set = WorkoutSet(
            weight=float(weight),
            reps=int(reps),
            timestamp=timestamp or self.clock(),
            exercise_id=exercise_id,
            is_warm_up=is_warm_up,
            is_bonus=is_bonus,
            is_drop_set=is_drop_set,
            is_assisted=is_assisted,
            is_pause_at_top=is_pause_at_top,
            is_timed_set=is_timed_set,
            tempo_seconds=tempo_seconds,
        )

        with self._transaction(exercise_id, "add set") as sets:
            self._check_unique_timestamp(sets, new_set.timestamp)
            previous = self.store.fetch_most_recent_set_before(exercise_id, new_set.timestamp)
            self.store.insert(new_set)

            captured = capture_rest_time(previous, new_set, self.config.rest_cap_seconds)
            if captured is not None:
                self.store.update(captured)

            winner = self._recompute_pr(sets + [new_set])

            exercise = self._exercise(exercise_id)
            exercise.bump_updated(self.clock())
            self.store.put_exercise(exercise)

        is_new_pr = winner is new_set
        if is_new_pr:
            self._emit_pr(new_set)
        return AddSetResult(workout_set=new_set, is_new_pr=is_new_pr, rest_captured_on=captured)

    def repeat_set(self, exercise_id: str, set_id: str | None = None, timestamp: datetime | None = None) -> AddSetResult:
        """
        Record a copy of an earlier set (the latest one by default) as a working set.

        Raises:
            SetValidationError: If the exercise has no sets to repeat
            UnknownSetError: If set_id doesn't exist
        """
        sets = self.sets_for(exercise_id)
        if set_id is None:
            if not sets:
                raise SetValidationError("no set to repeat", {"exercise_id": exercise_id})
            source = sets[-1]
        else:
            source = self._find(sets, set_id, exercise_id)
        return self.add_set(exercise_id, source.weight, source.reps, timestamp)

    def update_set(self, exercise_id: str, set_id: str, **changes: Any) -> WorkoutSet:
        """
        Edit fields of a recorded set.

        Accepts weight, reps, timestamp and the technique flags. The PR is
        recomputed when a field that affects it changes.

        Raises:
            SetValidationError: If the result would be invalid or a field is not editable
            UnknownSetError: If set_id doesn't exist
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise SetValidationError(f"not editable: {', '.join(sorted(unknown))}", {"fields": sorted(unknown)})

        with self._transaction(exercise_id, "update set") as sets:
            target = self._find(sets, set_id, exercise_id)
            validate_set_values(
                changes.get("weight", target.weight),
                changes.get("reps", target.reps),
                changes.get("tempo_seconds", target.tempo_seconds),
            )
            for name, cast in (("weight", float), ("reps", int), ("tempo_seconds", int), ("timestamp", to_local_naive)):
                if name in changes:
                    changes[name] = cast(changes[name])
            if "timestamp" in changes:
                self._check_unique_timestamp(sets, changes["timestamp"], ignore=target)

            for name, value in changes.items():
                setattr(target, name, value)
            self.store.update(target)

            if _PR_FIELDS & changes.keys():
                self._recompute_pr(sets)
        return target

    def toggle_warm_up(self, exercise_id: str, set_id: str) -> WorkoutSet:
        """Flip a set's warm-up flag and recompute the PR."""
        with self._transaction(exercise_id, "toggle warm-up") as sets:
            target = self._find(sets, set_id, exercise_id)
            target.is_warm_up = not target.is_warm_up
            self.store.update(target)
            self._recompute_pr(sets)
        return target

    def delete_set(self, exercise_id: str, set_id: str) -> None:
        """
        Delete a set.

        The PR is recomputed only when the deleted set held it.

        Raises:
            UnknownSetError: If set_id doesn't exist
        """
        with self._transaction(exercise_id, "delete set") as sets:
            target = self._find(sets, set_id, exercise_id)
            self.store.delete(target)
            if target.is_pb:
                self._recompute_pr([s for s in sets if s is not target])

    def expire_rest_timer(self, exercise_id: str, set_id: str) -> bool:
        """
        Force a set's rest to the cap after its countdown ran out.

        Returns:
            True if the rest was written, False if one was already captured
        """
        with self._transaction(exercise_id, "expire rest") as sets:
            target = self._find(sets, set_id, exercise_id)
            written = expire_rest_time(target, self.config.rest_cap_seconds)
            if written:
                self.store.update(target)
        return written
