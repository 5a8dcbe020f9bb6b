"""
Integration tests for the exercise engine over the JSONL store.

Every test works against a real JsonlSetStore in a temp directory and an
injected clock, so rest capture and day boundaries are deterministic.
"""

import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from lift_analytics.core.config import AnalyticsConfig
from lift_analytics.core.engine.config_loader import load_analytics_config
from lift_analytics.core.engine.exercise_engine import ExerciseEngine
from lift_analytics.core.errors import (
    SetValidationError,
    StoreWriteError,
    UnknownExerciseError,
    UnknownSetError,
)
from lift_analytics.core.models import WorkoutSet
from lift_analytics.core.records import find_personal_record_set, flagged_personal_records
from lift_analytics.io.serializers import (
    ValidationError,
    dict_to_set,
    parse_set_spec,
    parse_tags,
)
from lift_analytics.io.set_store import JsonlSetStore

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

START = datetime(2026, 3, 10, 18, 0, 0)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FailingStore(JsonlSetStore):
    """JsonlSetStore whose disk writes fail while `fail` is set, or only for `fail_for`'s sets file."""

    fail = False
    fail_for: str | None = None

    def _write_temp(self, path: Path, text: str) -> Path:
        if self.fail or (self.fail_for is not None and path == self.sets_path(self.fail_for)):
            raise OSError("disk full")
        return super()._write_temp(path, text)


class PausingStore(FailingStore):
    """Blocks the first insert for `pause_on` until `resume` is set."""

    pause_on: str | None = None

    def __init__(self, data_dir):
        super().__init__(data_dir)
        self.paused = threading.Event()
        self.resume = threading.Event()

    def insert(self, s: WorkoutSet) -> None:
        super().insert(s)
        if s.exercise_id == self.pause_on and not self.paused.is_set():
            self.paused.set()
            self.resume.wait(timeout=5)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(tmp_path, clock):
    return ExerciseEngine(JsonlSetStore(tmp_path), config=AnalyticsConfig(), clock=clock)


@pytest.fixture
def bench(engine):
    return engine.add_exercise("Bench press", {"chest", "push"})


def _pb_holders(engine: ExerciseEngine, exercise_id: str) -> list:
    return flagged_personal_records(engine.sets_for(exercise_id))


def _assert_single_correct_pr(engine: ExerciseEngine, exercise_id: str) -> None:
    sets = engine.sets_for(exercise_id)
    holders = [s for s in sets if s.is_pb]
    expected = find_personal_record_set(sets)
    if expected is None:
        assert holders == []
    else:
        assert holders == [expected]


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------


class TestExercises:
    def test_add_and_reload(self, tmp_path, engine, bench):
        reloaded = JsonlSetStore(tmp_path).load_exercises()
        assert [e.name for e in reloaded] == ["Bench press"]
        assert reloaded[0].tags == frozenset({"chest", "push"})

    def test_duplicate_name_rejected_case_insensitive(self, engine, bench):
        with pytest.raises(SetValidationError):
            engine.add_exercise("  bench PRESS ")

    def test_empty_name_rejected(self, engine):
        with pytest.raises(SetValidationError):
            engine.add_exercise("   ")

    def test_rename(self, engine, bench):
        other = engine.add_exercise("Squat")
        engine.rename_exercise(bench.exercise_id, "Flat bench")
        assert {e.name for e in engine.store.load_exercises()} == {"Flat bench", "Squat"}
        with pytest.raises(SetValidationError):
            engine.rename_exercise(other.exercise_id, "flat bench")

    def test_delete_cascades_to_sets(self, tmp_path, engine, bench, clock):
        engine.add_set(bench.exercise_id, 60, 10)
        sets_file = engine.store.sets_path(bench.exercise_id)
        assert sets_file.exists()

        engine.delete_exercise(bench.exercise_id)

        assert not sets_file.exists()
        assert engine.store.load_exercises() == []
        with pytest.raises(UnknownExerciseError):
            engine.sets_for(bench.exercise_id)
        assert JsonlSetStore(tmp_path).load_exercises() == []

    def test_unknown_exercise(self, engine):
        with pytest.raises(UnknownExerciseError):
            engine.add_set("missing", 60, 10)


# ---------------------------------------------------------------------------
# Adding sets: rest capture and PR signal
# ---------------------------------------------------------------------------


class TestAddSet:
    def test_rest_written_on_previous_set(self, engine, bench, clock):
        first = engine.add_set(bench.exercise_id, 60, 10).workout_set
        clock.advance(95)
        result = engine.add_set(bench.exercise_id, 60, 10)

        assert result.rest_captured_on is first
        assert first.rest_seconds == 95
        assert result.workout_set.rest_seconds is None

    def test_rest_is_capped(self, engine, bench, clock):
        first = engine.add_set(bench.exercise_id, 60, 10).workout_set
        clock.advance(600)
        engine.add_set(bench.exercise_id, 60, 10)
        assert first.rest_seconds == 180

    def test_warm_up_counts_as_previous_set(self, engine, bench, clock):
        warm = engine.add_set(bench.exercise_id, 40, 10, is_warm_up=True).workout_set
        clock.advance(60)
        engine.add_set(bench.exercise_id, 60, 10)
        assert warm.rest_seconds == 60

    def test_first_set_has_no_rest_capture(self, engine, bench):
        assert engine.add_set(bench.exercise_id, 60, 10).rest_captured_on is None

    def test_pr_signal_only_for_new_holder(self, engine, bench, clock):
        fired = []
        engine.on_pr_achieved(fired.append)

        a = engine.add_set(bench.exercise_id, 60, 10)
        clock.advance(120)
        b = engine.add_set(bench.exercise_id, 50, 12)
        clock.advance(120)
        c = engine.add_set(bench.exercise_id, 60, 10)  # ties go to the earlier set
        clock.advance(120)
        d = engine.add_set(bench.exercise_id, 62.5, 5)

        assert [r.is_new_pr for r in (a, b, c, d)] == [True, False, False, True]
        assert fired == [a.workout_set, d.workout_set]
        assert _pb_holders(engine, bench.exercise_id) == [d.workout_set]

    def test_heavier_warm_up_is_not_a_pr(self, engine, bench, clock):
        fired = []
        engine.on_pr_achieved(fired.append)
        engine.add_set(bench.exercise_id, 60, 10)
        clock.advance(60)
        result = engine.add_set(bench.exercise_id, 100, 5, is_warm_up=True)
        assert not result.is_new_pr
        assert len(fired) == 1

    def test_invalid_values_change_nothing(self, engine, bench):
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, -5, 10)
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, 0, 0)
        assert engine.sets_for(bench.exercise_id) == []

    def test_duplicate_timestamp_rejected(self, engine, bench):
        engine.add_set(bench.exercise_id, 60, 10, START)
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, 65, 8, START)
        assert len(engine.sets_for(bench.exercise_id)) == 1

    def test_backdated_set_captures_rest_on_its_predecessor(self, engine, bench):
        early = engine.add_set(bench.exercise_id, 60, 10, START).workout_set
        engine.add_set(bench.exercise_id, 60, 10, START + timedelta(minutes=10))
        engine.add_set(bench.exercise_id, 60, 8, START + timedelta(minutes=2))
        assert early.rest_seconds == 120

    def test_bumps_last_updated(self, engine, bench, clock):
        clock.advance(3600)
        engine.add_set(bench.exercise_id, 60, 10)
        assert bench.last_updated == clock.now

    def test_persisted_and_reloaded(self, tmp_path, engine, bench, clock):
        engine.add_set(bench.exercise_id, 60, 10)
        clock.advance(90)
        engine.add_set(bench.exercise_id, 65, 8, is_drop_set=True)

        reloaded = JsonlSetStore(tmp_path).fetch_sets(bench.exercise_id)
        assert [(s.weight, s.reps) for s in reloaded] == [(60, 10), (65, 8)]
        assert reloaded[0].rest_seconds == 90
        assert [s.is_pb for s in reloaded] == [False, True]
        assert reloaded[1].is_drop_set

    def test_working_sets_query_skips_warm_up_and_bonus(self, engine, bench, clock):
        engine.add_set(bench.exercise_id, 40, 10, is_warm_up=True)
        clock.advance(60)
        working = engine.add_set(bench.exercise_id, 60, 10).workout_set
        clock.advance(60)
        engine.add_set(bench.exercise_id, 50, 15, is_bonus=True)
        assert engine.store.fetch_working_sets(bench.exercise_id) == [working]

    def test_repeat_set(self, engine, bench, clock):
        engine.add_set(bench.exercise_id, 40, 10, is_warm_up=True)
        clock.advance(60)
        result = engine.repeat_set(bench.exercise_id)
        assert (result.workout_set.weight, result.workout_set.reps) == (40, 10)
        assert not result.workout_set.is_warm_up

    def test_repeat_without_sets(self, engine, bench):
        with pytest.raises(SetValidationError):
            engine.repeat_set(bench.exercise_id)


# ---------------------------------------------------------------------------
# Edits and deletes
# ---------------------------------------------------------------------------


class TestEditAndDelete:
    def _three_sets(self, engine, bench, clock):
        out = []
        for weight, reps in [(60, 10), (70, 5), (65, 8)]:
            out.append(engine.add_set(bench.exercise_id, weight, reps).workout_set)
            clock.advance(120)
        return out

    def test_deleting_pr_holder_moves_flag(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        engine.delete_set(bench.exercise_id, b.set_id)
        assert _pb_holders(engine, bench.exercise_id) == [c]

    def test_deleting_other_set_keeps_holder(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        engine.delete_set(bench.exercise_id, a.set_id)
        assert _pb_holders(engine, bench.exercise_id) == [b]

    def test_noop_edit_keeps_holder(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        engine.update_set(bench.exercise_id, b.set_id, weight=b.weight, reps=b.reps)
        assert _pb_holders(engine, bench.exercise_id) == [b]

    def test_edit_recomputes(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        engine.update_set(bench.exercise_id, a.set_id, weight=80)
        assert _pb_holders(engine, bench.exercise_id) == [a]

    def test_invalid_edit_rejected(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        with pytest.raises(SetValidationError):
            engine.update_set(bench.exercise_id, a.set_id, weight=0, reps=0)
        with pytest.raises(SetValidationError):
            engine.update_set(bench.exercise_id, a.set_id, is_pb=True)
        with pytest.raises(SetValidationError):
            engine.update_set(bench.exercise_id, a.set_id, timestamp=b.timestamp)
        assert (a.weight, a.reps) == (60, 10)

    def test_toggle_warm_up_moves_pr(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        engine.toggle_warm_up(bench.exercise_id, b.set_id)
        assert b.is_warm_up
        assert _pb_holders(engine, bench.exercise_id) == [c]
        engine.toggle_warm_up(bench.exercise_id, b.set_id)
        assert _pb_holders(engine, bench.exercise_id) == [b]

    def test_unknown_set(self, engine, bench):
        with pytest.raises(UnknownSetError):
            engine.delete_set(bench.exercise_id, "nope")
        with pytest.raises(UnknownSetError):
            engine.toggle_warm_up(bench.exercise_id, "nope")

    def test_pr_unique_after_mixed_sequence(self, engine, bench, clock):
        a, b, c = self._three_sets(engine, bench, clock)
        _assert_single_correct_pr(engine, bench.exercise_id)
        engine.update_set(bench.exercise_id, c.set_id, weight=70, reps=5)
        _assert_single_correct_pr(engine, bench.exercise_id)
        engine.delete_set(bench.exercise_id, b.set_id)
        _assert_single_correct_pr(engine, bench.exercise_id)
        engine.update_set(bench.exercise_id, c.set_id, is_bonus=True)
        _assert_single_correct_pr(engine, bench.exercise_id)
        engine.toggle_warm_up(bench.exercise_id, a.set_id)
        _assert_single_correct_pr(engine, bench.exercise_id)
        assert _pb_holders(engine, bench.exercise_id) == []


# ---------------------------------------------------------------------------
# Rest timer expiry
# ---------------------------------------------------------------------------


class TestRestExpiry:
    def test_expire_sets_cap_once(self, engine, bench):
        s = engine.add_set(bench.exercise_id, 60, 10).workout_set
        assert engine.expire_rest_timer(bench.exercise_id, s.set_id)
        assert s.rest_seconds == 180
        assert not engine.expire_rest_timer(bench.exercise_id, s.set_id)

    def test_expire_keeps_captured_rest(self, engine, bench, clock):
        s = engine.add_set(bench.exercise_id, 60, 10).workout_set
        clock.advance(45)
        engine.add_set(bench.exercise_id, 60, 10)
        assert not engine.expire_rest_timer(bench.exercise_id, s.set_id)
        assert s.rest_seconds == 45

    def test_configured_cap(self, tmp_path, clock):
        engine = ExerciseEngine(JsonlSetStore(tmp_path), AnalyticsConfig(rest_cap_seconds=120), clock)
        ex = engine.add_exercise("Row")
        s = engine.add_set(ex.exercise_id, 50, 10).workout_set
        clock.advance(300)
        engine.add_set(ex.exercise_id, 50, 10)
        assert s.rest_seconds == 120


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------


class TestStoreFailure:
    def test_failed_add_leaves_no_trace(self, tmp_path, clock):
        store = FailingStore(tmp_path)
        engine = ExerciseEngine(store, AnalyticsConfig(), clock)
        ex = engine.add_exercise("Deadlift")
        first = engine.add_set(ex.exercise_id, 100, 5).workout_set
        updated_before = ex.last_updated

        fired = []
        engine.on_pr_achieved(fired.append)
        store.fail = True
        clock.advance(90)
        with pytest.raises(StoreWriteError):
            engine.add_set(ex.exercise_id, 120, 5)

        assert fired == []
        assert first.rest_seconds is None
        assert first.is_pb
        assert ex.last_updated == updated_before
        assert engine.sets_for(ex.exercise_id) == [first]

        store.fail = False
        assert len(JsonlSetStore(tmp_path).fetch_sets(ex.exercise_id)) == 1

    def test_failed_delete_restores_set(self, tmp_path, clock):
        store = FailingStore(tmp_path)
        engine = ExerciseEngine(store, AnalyticsConfig(), clock)
        ex = engine.add_exercise("Deadlift")
        s = engine.add_set(ex.exercise_id, 100, 5).workout_set

        store.fail = True
        with pytest.raises(StoreWriteError):
            engine.delete_set(ex.exercise_id, s.set_id)
        assert engine.sets_for(ex.exercise_id) == [s]
        assert s.is_pb


# ---------------------------------------------------------------------------
# Exercise isolation
# ---------------------------------------------------------------------------


class TestExerciseIsolation:
    """A commit on one exercise never drops or persists another's staged work."""

    @pytest.fixture
    def store(self, tmp_path):
        return PausingStore(tmp_path)

    @pytest.fixture
    def two_exercises(self, store, clock):
        engine = ExerciseEngine(store, AnalyticsConfig(), clock)
        bench = engine.add_exercise("Bench press")
        squat = engine.add_exercise("Squat")
        engine.add_set(squat.exercise_id, 100, 5)
        clock.advance(90)
        return engine, bench, squat

    @staticmethod
    def _start_paused_add(engine, store, exercise_id):
        outcome = {}

        def run():
            try:
                outcome["result"] = engine.add_set(exercise_id, 110, 5)
            except Exception as e:  # surfaced by the assertions below
                outcome["error"] = e

        store.pause_on = exercise_id
        worker = threading.Thread(target=run)
        worker.start()
        assert store.paused.wait(timeout=5)
        return worker, outcome

    def test_failed_commit_keeps_other_exercise_staging(self, tmp_path, store, two_exercises):
        engine, bench, squat = two_exercises
        worker, outcome = self._start_paused_add(engine, store, squat.exercise_id)

        store.fail_for = bench.exercise_id
        with pytest.raises(StoreWriteError):
            engine.add_set(bench.exercise_id, 60, 10)

        store.resume.set()
        worker.join(timeout=5)
        assert "error" not in outcome
        assert outcome["result"].is_new_pr

        on_disk = JsonlSetStore(tmp_path)
        squat_sets = on_disk.fetch_sets(squat.exercise_id)
        assert [(s.weight, s.reps) for s in squat_sets] == [(100, 5), (110, 5)]
        assert squat_sets[0].rest_seconds == 90
        assert squat_sets[1].is_pb
        assert on_disk.fetch_sets(bench.exercise_id) == []

    def test_commit_does_not_write_other_exercise_half_state(self, tmp_path, store, two_exercises):
        engine, bench, squat = two_exercises
        worker, outcome = self._start_paused_add(engine, store, squat.exercise_id)

        engine.add_set(bench.exercise_id, 60, 10)

        mid = JsonlSetStore(tmp_path)
        assert len(mid.fetch_sets(bench.exercise_id)) == 1
        (only,) = mid.fetch_sets(squat.exercise_id)
        assert only.rest_seconds is None

        store.resume.set()
        worker.join(timeout=5)
        assert "error" not in outcome

        final = JsonlSetStore(tmp_path)
        assert len(final.fetch_sets(squat.exercise_id)) == 2
        assert len(final.fetch_sets(bench.exercise_id)) == 1
        assert {e.name for e in final.load_exercises()} == {"Bench press", "Squat"}

    def test_save_of_one_exercise_leaves_others_staged(self, tmp_path, clock):
        store = JsonlSetStore(tmp_path)
        engine = ExerciseEngine(store, AnalyticsConfig(), clock)
        bench = engine.add_exercise("Bench press")
        squat = engine.add_exercise("Squat")

        store.insert(WorkoutSet(weight=60, reps=10, timestamp=START, exercise_id=bench.exercise_id))
        store.insert(WorkoutSet(weight=100, reps=5, timestamp=START, exercise_id=squat.exercise_id))
        store.save(bench.exercise_id)

        assert not store.has_pending_changes(bench.exercise_id)
        assert store.has_pending_changes(squat.exercise_id)
        assert JsonlSetStore(tmp_path).fetch_sets(squat.exercise_id) == []

        store.discard(squat.exercise_id)
        assert store.fetch_sets(squat.exercise_id) == []


# ---------------------------------------------------------------------------
# Timezones and numeric validation
# ---------------------------------------------------------------------------


class TestTimestampNormalization:
    def test_aware_timestamp_after_naive_history(self, engine, bench):
        first = engine.add_set(bench.exercise_id, 60, 10, START).workout_set
        later = (START + timedelta(minutes=2)).astimezone(timezone.utc)
        result = engine.add_set(bench.exercise_id, 60, 10, later)

        assert result.workout_set.timestamp.tzinfo is None
        assert result.workout_set.timestamp == START + timedelta(minutes=2)
        assert first.rest_seconds == 120

    def test_aware_duplicate_of_naive_timestamp_rejected(self, engine, bench):
        engine.add_set(bench.exercise_id, 60, 10, START)
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, 65, 8, START.astimezone())
        assert len(engine.sets_for(bench.exercise_id)) == 1

    def test_update_with_aware_timestamp_stores_local_time(self, tmp_path, engine, bench):
        s = engine.add_set(bench.exercise_id, 60, 10, START).workout_set
        moved = (START + timedelta(minutes=5)).astimezone(timezone.utc)
        engine.update_set(bench.exercise_id, s.set_id, timestamp=moved)

        assert s.timestamp.tzinfo is None
        assert s.timestamp == START + timedelta(minutes=5)
        (stored,) = JsonlSetStore(tmp_path).fetch_sets(bench.exercise_id)
        assert stored.timestamp == START + timedelta(minutes=5)


class TestNumericValidation:
    @pytest.mark.parametrize(
        "weight, reps",
        [
            (float("nan"), 5),
            (float("inf"), 5),
            (-float("inf"), 5),
            (60, float("nan")),
            (60, 2.5),
        ],
    )
    def test_non_finite_or_fractional_values_rejected(self, engine, bench, weight, reps):
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, weight, reps)
        assert engine.sets_for(bench.exercise_id) == []

    def test_rejected_nan_cannot_hold_pr(self, engine, bench, clock):
        with pytest.raises(SetValidationError):
            engine.add_set(bench.exercise_id, float("nan"), 5)
        clock.advance(60)
        result = engine.add_set(bench.exercise_id, 100, 5)

        assert result.is_new_pr
        assert _pb_holders(engine, bench.exercise_id) == [result.workout_set]

    def test_update_rejects_nan_weight(self, engine, bench):
        s = engine.add_set(bench.exercise_id, 60, 10).workout_set
        with pytest.raises(SetValidationError):
            engine.update_set(bench.exercise_id, s.set_id, weight=float("nan"))
        assert s.weight == 60

    def test_update_coerces_field_types(self, tmp_path, engine, bench):
        s = engine.add_set(bench.exercise_id, 60, 10).workout_set
        engine.update_set(bench.exercise_id, s.set_id, reps=10.0, weight=65)

        assert type(s.reps) is int
        assert type(s.weight) is float
        (stored,) = JsonlSetStore(tmp_path).fetch_sets(bench.exercise_id)
        assert type(stored.reps) is int
        assert stored.weight == 65.0


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    def test_locks_are_per_exercise(self, engine):
        assert engine._lock_for("a") is engine._lock_for("a")
        assert engine._lock_for("a") is not engine._lock_for("b")

    def test_parallel_adds_are_serialized(self, engine, bench):
        def worker(offset: int) -> None:
            for i in range(10):
                ts = START + timedelta(seconds=offset + 2 * i)
                engine.add_set(bench.exercise_id, 60 + offset, 10, ts)

        threads = [threading.Thread(target=worker, args=(k,)) for k in (0, 1)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        sets = engine.sets_for(bench.exercise_id)
        assert len(sets) == 20
        _assert_single_correct_pr(engine, bench.exercise_id)
        assert all(0 <= s.rest_seconds <= 180 for s in sets if s.rest_seconds is not None)


# ---------------------------------------------------------------------------
# Serializers and config loading
# ---------------------------------------------------------------------------


class TestSerializers:
    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("60x10", (60.0, 10)),
            ("62.5 x 8", (62.5, 8)),
            ("60kg x 10", (60.0, 10)),
            ("12", (0.0, 12)),
            ("100kg", (100.0, 0)),
        ],
    )
    def test_parse_set_spec(self, spec, expected):
        assert parse_set_spec(spec) == expected

    def test_parse_set_spec_rejects_garbage(self):
        with pytest.raises(ValidationError):
            parse_set_spec("heavy")

    def test_parse_tags(self):
        assert parse_tags(" Chest, push ,,") == frozenset({"chest", "push"})
        assert parse_tags(None) == frozenset()

    def test_invalid_stored_set(self):
        with pytest.raises(ValidationError):
            dict_to_set({"set_id": "x", "timestamp": "2026-03-10T18:00:00", "weight": 0, "reps": 0})
        with pytest.raises(ValidationError):
            dict_to_set({"set_id": "x", "timestamp": "yesterday", "weight": 60, "reps": 10})
        with pytest.raises(ValidationError):
            dict_to_set({"set_id": "x", "timestamp": "2026-03-10T18:00:00", "weight": "nan", "reps": 5})

    def test_corrupt_line_reports_line_number(self, tmp_path):
        (tmp_path / "ex_sets.jsonl").write_text('{"bad json\n')
        with pytest.raises(ValidationError, match="line 1"):
            JsonlSetStore(tmp_path).fetch_sets("ex")


class TestConfigLoader:
    def test_bundled_defaults(self, tmp_path):
        cfg = load_analytics_config(tmp_path / "missing.yaml")
        assert cfg == AnalyticsConfig()

    def test_user_override_is_merged(self, tmp_path):
        override = tmp_path / "analytics.yaml"
        override.write_text("rest:\n  REST_CAP_SECONDS: 120\nunknown:\n  FOO: 1\n")
        cfg = load_analytics_config(override)
        assert cfg.rest_cap_seconds == 120
        assert cfg.session_tail_seconds == 180
        assert cfg.weight_increment_kg == 2.5

    def test_malformed_override_is_ignored(self, tmp_path, caplog):
        override = tmp_path / "analytics.yaml"
        override.write_text("rest: [unclosed\n")
        with caplog.at_level("WARNING"):
            cfg = load_analytics_config(override)
        assert cfg == AnalyticsConfig()
        assert "Ignoring" in caplog.text

    def test_invalid_values_fall_back(self, tmp_path, caplog):
        override = tmp_path / "analytics.yaml"
        override.write_text("overload:\n  WEIGHT_INCREMENT_KG: -1\n")
        with caplog.at_level("WARNING"):
            cfg = load_analytics_config(override)
        assert cfg.weight_increment_kg == 2.5
