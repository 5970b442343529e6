"""
Point the app at an in-memory sqlite database before anything imports
liftlog.db, create the schema, and provide engine test doubles.
"""
import os

os.environ.setdefault("DB_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from liftlog.db import Base, engine
from liftlog import models  # noqa: F401  # registers tables
from liftlog.engine.controller import SessionController
from liftlog.engine.errors import MutationFailure
from liftlog.engine.loader import SessionDataLoader, merge_progress, merge_set, replace_set, drop_set, find_set
from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.exercise_set import SetCreate, SetCreated, SetRead, SetUpdate
from liftlog.schemas.progress import ExerciseProgress
from liftlog.schemas.session import SessionDetail, SessionExerciseRead

Base.metadata.create_all(bind=engine)

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


class RecordingGateway:
    """In-memory gateway that records every call and can fail on demand."""

    def __init__(self, session: SessionDetail):
        self.session = session
        self.calls: list[tuple] = []
        self.counts: Counter = Counter()
        self.failures: dict[str, set[int]] = {}
        self._next_id = 1000

    def fail(self, method: str, *, on_call: int = 1) -> None:
        self.failures.setdefault(method, set()).add(on_call)

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def _record(self, name, *args):
        self.counts[name] += 1
        self.calls.append((name, *args))
        if self.counts[name] in self.failures.get(name, ()):
            raise MutationFailure(f"{name} failed", status_code=503)

    def fetch_active_session(self):
        self._record("fetch_active_session")
        return self.session

    def start_exercise(self, session_id, exercise_id, started_at):
        self._record("start_exercise", exercise_id)
        progress = ExerciseProgress(exercise_id=exercise_id, status=ExerciseStatus.in_progress, started_at=started_at)
        self.session = merge_progress(self.session, progress)
        return progress

    def complete_exercise(self, session_id, exercise_id, completed_at):
        self._record("complete_exercise", exercise_id)
        progress = ExerciseProgress(exercise_id=exercise_id, status=ExerciseStatus.completed, completed_at=completed_at)
        self.session = merge_progress(self.session, progress)
        return progress

    def add_set(self, session_id, payload: SetCreate):
        self._record("add_set", payload)
        exercise = next(ex for ex in self.session.exercises if ex.exercise_id == payload.exercise_id)
        if payload.set_index in {s.set_index for s in exercise.sets}:
            raise MutationFailure("Set index already logged", status_code=409)
        set_index = payload.set_index or max((s.set_index for s in exercise.sets), default=0) + 1
        self._next_id += 1
        new_set = SetRead(
            id=self._next_id,
            exercise_id=payload.exercise_id,
            set_index=set_index,
            reps=payload.reps,
            weight=payload.weight,
            band_label=payload.band_label,
            started_at=payload.started_at,
            completed_at=payload.completed_at,
            created_at=payload.completed_at,
        )
        status = ExerciseStatus.in_progress if exercise.status == ExerciseStatus.pending else exercise.status
        progress = ExerciseProgress(exercise_id=payload.exercise_id, status=status)
        self.session = merge_progress(merge_set(self.session, new_set), progress)
        return SetCreated(set=new_set, exercise_progress=progress)

    def update_set(self, set_id, payload: SetUpdate):
        self._record("update_set", set_id, payload)
        updated = find_set(self.session, set_id).model_copy(update=payload.model_dump(exclude_unset=True))
        self.session = replace_set(self.session, updated)
        return updated

    def delete_set(self, set_id):
        self._record("delete_set", set_id)
        self.session = drop_set(self.session, set_id)

    def end_session(self, session_id, ended_at, notes=None):
        self._record("end_session", ended_at)
        update = {"ended_at": ended_at}
        if notes is not None:
            update["notes"] = notes
        self.session = self.session.model_copy(update=update)
        return self.session

    def cancel_session(self, session_id):
        self._record("cancel_session", session_id)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _make_set(exercise_id, set_index, *, id=None, reps=10, weight=50.0, band_label=None, at=None):
    at = at or T0 + timedelta(minutes=set_index)
    return SetRead(
        id=id, exercise_id=exercise_id, set_index=set_index, reps=reps, weight=weight,
        band_label=band_label, started_at=at, completed_at=at, created_at=at,
    )


def _make_exercise(exercise_id, *, position=None, name=None, equipment="Barbell", target_sets=3,
                   target_reps=10, target_reps_range=None, target_weight=50.0, target_band_label=None,
                   superset_group=None, status=ExerciseStatus.pending, sets=()):
    return SessionExerciseRead(
        exercise_id=exercise_id,
        name=name or f"Exercise {exercise_id}",
        equipment=equipment,
        target_sets=target_sets,
        target_reps=target_reps,
        target_reps_range=target_reps_range,
        target_weight=target_weight,
        target_band_label=target_band_label,
        superset_group=superset_group,
        position=exercise_id if position is None else position,
        status=status,
        sets=tuple(sets),
    )


def _make_session(*exercises, id=1):
    return SessionDetail(id=id, user_id=1, routine_name="Push", started_at=T0, exercises=tuple(exercises))


@pytest.fixture
def make_set():
    return _make_set


@pytest.fixture
def make_exercise():
    return _make_exercise


@pytest.fixture
def make_session():
    return _make_session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller_for(clock):
    """Build (controller, gateway) around a session snapshot."""
    def build(session, **kwargs):
        gateway = RecordingGateway(session)
        loader = SessionDataLoader(gateway)
        loader.load()
        gateway.calls.clear()
        gateway.counts.clear()
        ticks = iter(range(10_000))
        controller = SessionController(
            loader,
            undo_window=kwargs.pop("undo_window", 5.0),
            now=lambda: T0 + timedelta(minutes=30, seconds=next(ticks)),
            clock=clock,
            **kwargs,
        )
        return controller, gateway
    return build
