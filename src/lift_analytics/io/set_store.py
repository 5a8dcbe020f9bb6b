"""
JSONL-based storage for recorded sets and the exercise catalog.

Handles reading, staging, and committing set and exercise records.
"""

import bisect
import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from ..core.errors import StoreWriteError, UnknownExerciseError, UnknownSetError
from ..core.models import Exercise, WorkoutSet, working_sets
from .serializers import (
    ValidationError,
    dict_to_exercise,
    exercise_to_dict,
    json_line_to_set,
    set_to_json_line,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """
    Persistence collaborator used by the exercise engine.

    insert/update/delete and the catalog calls only stage changes, keyed by
    exercise. save(exercise_id) makes that exercise's staged changes durable
    or raises StoreWriteError, in which case they are dropped. Staged changes
    of other exercises are never written or dropped by it. Reads see staged
    changes.
    """

    def fetch_sets(self, exercise_id: str) -> list[WorkoutSet]: ...

    def fetch_working_sets(self, exercise_id: str) -> list[WorkoutSet]: ...

    def fetch_most_recent_set_before(self, exercise_id: str, before: datetime) -> WorkoutSet | None: ...

    def insert(self, s: WorkoutSet) -> None: ...

    def update(self, s: WorkoutSet) -> None: ...

    def delete(self, s: WorkoutSet) -> None: ...

    def save(self, exercise_id: str | None = None) -> None: ...

    def discard(self, exercise_id: str | None = None) -> None: ...

    def load_exercises(self) -> list[Exercise]: ...

    def get_exercise(self, exercise_id: str) -> Exercise: ...

    def put_exercise(self, exercise: Exercise) -> None: ...

    def remove_exercise(self, exercise_id: str) -> None: ...


class JsonlSetStore:
    """
    Manages sets stored in per-exercise JSONL files.

    Layout under data_dir:
    - exercises.json: the exercise catalog (a JSON list)
    - <exercise_id>_sets.jsonl: one JSON object per set, chronological

    Files are loaded lazily and cached. Writes are staged in memory per
    exercise and committed by save(), which writes every temp file first and
    only then replaces the targets. The catalog file is rebuilt from the last
    committed rows plus the exercise being saved, so another exercise's
    uncommitted edits never reach disk. Shared state is guarded by one
    re-entrant lock.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the catalog and set files
        """
        self.data_dir = Path(data_dir)
        self.catalog_path = self.data_dir / "exercises.json"

        self._lock = threading.RLock()

        self._sets: dict[str, list[WorkoutSet]] = {}
        self._exercises: dict[str, Exercise] | None = None
        # Catalog entries as last written to disk
        self._catalog_rows: dict[str, dict[str, Any]] = {}

        self._pending_sets: dict[str, list[WorkoutSet]] = {}
        # None marks a staged removal
        self._pending_exercises: dict[str, Exercise | None] = {}

    # ------------------------------------------------------------------
    # Paths and loading
    # ------------------------------------------------------------------

    def sets_path(self, exercise_id: str) -> Path:
        """Path of the JSONL file for one exercise."""
        return self.data_dir / f"{exercise_id}_sets.jsonl"

    def _load_catalog(self) -> dict[str, Exercise]:
        if self._exercises is None:
            exercises: dict[str, Exercise] = {}
            if self.catalog_path.exists():
                try:
                    with open(self.catalog_path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ValidationError(f"Error parsing {self.catalog_path}: {e}") from e
                if not isinstance(data, list):
                    raise ValidationError(f"{self.catalog_path} must contain a JSON list")
                for item in data:
                    ex = dict_to_exercise(item)
                    exercises[ex.exercise_id] = ex
            self._exercises = exercises
            self._catalog_rows = {ex_id: exercise_to_dict(ex) for ex_id, ex in exercises.items()}
        return self._exercises

    def _load_sets(self, exercise_id: str) -> list[WorkoutSet]:
        if exercise_id not in self._sets:
            path = self.sets_path(exercise_id)
            sets: list[WorkoutSet] = []
            if path.exists():
                with open(path, "r", encoding="utf-8") as f:
                    for line_num, line in enumerate(f, 1):
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            s = json_line_to_set(line)
                        except ValidationError as e:
                            raise ValidationError(f"Error parsing line {line_num} in {path}: {e}") from e
                        s.exercise_id = exercise_id
                        sets.append(s)
            sets.sort(key=lambda s: s.timestamp)
            self._sets[exercise_id] = sets
        return self._sets[exercise_id]

    def _view(self, exercise_id: str) -> list[WorkoutSet]:
        """Current sets for an exercise, staged changes included."""
        if exercise_id in self._pending_sets:
            return self._pending_sets[exercise_id]
        return self._load_sets(exercise_id)

    def _stage(self, exercise_id: str) -> list[WorkoutSet]:
        if exercise_id not in self._pending_sets:
            self._pending_sets[exercise_id] = list(self._load_sets(exercise_id))
        return self._pending_sets[exercise_id]

    def _catalog_view(self) -> dict[str, Exercise]:
        catalog = dict(self._load_catalog())
        for exercise_id, exercise in self._pending_exercises.items():
            if exercise is None:
                catalog.pop(exercise_id, None)
            else:
                catalog[exercise_id] = exercise
        return catalog

    def _is_removed(self, exercise_id: str) -> bool:
        return exercise_id in self._pending_exercises and self._pending_exercises[exercise_id] is None

    # ------------------------------------------------------------------
    # Set queries
    # ------------------------------------------------------------------

    def fetch_sets(self, exercise_id: str) -> list[WorkoutSet]:
        """
        All sets for an exercise, oldest first.

        Returns:
            A new list; the WorkoutSet objects are the store's own instances
        """
        with self._lock:
            return list(self._view(exercise_id))

    def fetch_working_sets(self, exercise_id: str) -> list[WorkoutSet]:
        """Working sets (no warm-up, no bonus) for an exercise, oldest first."""
        with self._lock:
            return working_sets(self._view(exercise_id))

    def fetch_most_recent_set_before(self, exercise_id: str, before: datetime) -> WorkoutSet | None:
        """
        The latest set strictly before a timestamp, warm-up and bonus included.

        Uses a binary search over the chronologically sorted collection.
        """
        with self._lock:
            sets = self._view(exercise_id)
            idx = bisect.bisect_left([s.timestamp for s in sets], before)
            return sets[idx - 1] if idx > 0 else None

    # ------------------------------------------------------------------
    # Set mutations (staged)
    # ------------------------------------------------------------------

    def insert(self, s: WorkoutSet) -> None:
        """Stage a new set, keeping chronological order."""
        with self._lock:
            sets = self._stage(s.exercise_id)
            idx = bisect.bisect_right([x.timestamp for x in sets], s.timestamp)
            sets.insert(idx, s)

    def update(self, s: WorkoutSet) -> None:
        """
        Stage an in-place edit of a set already in the store.

        Raises:
            UnknownSetError: If the set isn't stored under its exercise
        """
        with self._lock:
            sets = self._stage(s.exercise_id)
            if not any(x is s for x in sets):
                raise UnknownSetError(s.set_id, s.exercise_id)
            # Timestamps may have changed
            sets.sort(key=lambda x: x.timestamp)

    def delete(self, s: WorkoutSet) -> None:
        """
        Stage removal of a set.

        Raises:
            UnknownSetError: If the set isn't stored under its exercise
        """
        with self._lock:
            sets = self._stage(s.exercise_id)
            for i, x in enumerate(sets):
                if x.set_id == s.set_id:
                    del sets[i]
                    return
            raise UnknownSetError(s.set_id, s.exercise_id)

    # ------------------------------------------------------------------
    # Exercise catalog
    # ------------------------------------------------------------------

    def load_exercises(self) -> list[Exercise]:
        """All exercises, oldest first."""
        with self._lock:
            return sorted(self._catalog_view().values(), key=lambda e: e.created_at)

    def get_exercise(self, exercise_id: str) -> Exercise:
        """
        Look up an exercise by id.

        Raises:
            UnknownExerciseError: If there is no such exercise
        """
        with self._lock:
            exercise = self._catalog_view().get(exercise_id)
        if exercise is None:
            raise UnknownExerciseError(exercise_id)
        return exercise

    def put_exercise(self, exercise: Exercise) -> None:
        """Stage adding or updating an exercise."""
        with self._lock:
            self._load_catalog()
            self._pending_exercises[exercise.exercise_id] = exercise

    def remove_exercise(self, exercise_id: str) -> None:
        """
        Stage removal of an exercise together with all of its sets.

        Raises:
            UnknownExerciseError: If there is no such exercise
        """
        with self._lock:
            self.get_exercise(exercise_id)
            self._pending_exercises[exercise_id] = None
            self._pending_sets[exercise_id] = []

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def has_pending_changes(self, exercise_id: str | None = None) -> bool:
        """True if anything (or anything for one exercise) is staged."""
        with self._lock:
            if exercise_id is None:
                return bool(self._pending_sets) or bool(self._pending_exercises)
            return exercise_id in self._pending_sets or exercise_id in self._pending_exercises

    def discard(self, exercise_id: str | None = None) -> None:
        """Drop staged changes of one exercise, or of all when exercise_id is None."""
        with self._lock:
            if exercise_id is None:
                self._pending_sets.clear()
                self._pending_exercises.clear()
                return
            self._pending_sets.pop(exercise_id, None)
            self._pending_exercises.pop(exercise_id, None)

    def _write_temp(self, path: Path, text: str) -> Path:
        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
        return tmp

    def _commit(self, exercise_id: str) -> None:
        """Write one exercise's staged changes, then publish them as committed."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        removed = self._is_removed(exercise_id)
        path = self.sets_path(exercise_id)

        writes: list[tuple[Path, Path]] = []
        rows = None
        try:
            if exercise_id in self._pending_sets and not removed:
                text = "".join(set_to_json_line(s) + "\n" for s in self._pending_sets[exercise_id])
                writes.append((self._write_temp(path, text), path))
            if exercise_id in self._pending_exercises:
                rows = dict(self._catalog_rows)
                if removed:
                    rows.pop(exercise_id, None)
                else:
                    rows[exercise_id] = exercise_to_dict(self._pending_exercises[exercise_id])
                catalog = sorted(rows.values(), key=lambda r: r["created_at"])
                writes.append((self._write_temp(self.catalog_path, json.dumps(catalog, indent=2)), self.catalog_path))
        except OSError:
            for tmp, _ in writes:
                tmp.unlink(missing_ok=True)
            raise

        for tmp, target in writes:
            os.replace(tmp, target)
        if removed:
            path.unlink(missing_ok=True)

        if exercise_id in self._pending_sets:
            if removed:
                self._sets.pop(exercise_id, None)
            else:
                self._sets[exercise_id] = self._pending_sets[exercise_id]
        if rows is not None:
            committed = self._load_catalog()
            if removed:
                committed.pop(exercise_id, None)
            else:
                committed[exercise_id] = self._pending_exercises[exercise_id]
            self._catalog_rows = rows

    def save(self, exercise_id: str | None = None) -> None:
        """
        Make staged changes durable.

        Args:
            exercise_id: Exercise whose changes to commit (default: every
                exercise with staged changes)

        Raises:
            StoreWriteError: If a file cannot be written; the changes being
                saved are discarded, and every other exercise's committed
                and staged state is left alone
        """
        with self._lock:
            if exercise_id is None:
                ids = sorted(set(self._pending_sets) | set(self._pending_exercises))
            elif self.has_pending_changes(exercise_id):
                ids = [exercise_id]
            else:
                ids = []

            for ex_id in ids:
                try:
                    self._commit(ex_id)
                except OSError as e:
                    logger.warning("Store write failed for exercise %s in %s: %s", ex_id, self.data_dir, e)
                    self.discard(ex_id)
                    raise StoreWriteError(
                        f"Failed to save records: {e}",
                        {"data_dir": str(self.data_dir), "exercise_id": ex_id},
                    ) from e
                self.discard(ex_id)
                logger.debug("Committed staged changes for exercise %s", ex_id)


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    Returns:
        $LIFT_ANALYTICS_HOME if set, else ~/.lift-analytics
    """
    home = os.environ.get("LIFT_ANALYTICS_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".lift-analytics"


def get_default_store() -> JsonlSetStore:
    """
    Get a JsonlSetStore in the default data directory.

    Returns:
        JsonlSetStore instance
    """
    return JsonlSetStore(get_default_data_dir())
