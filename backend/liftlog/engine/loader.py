from __future__ import annotations
import logging

from liftlog.schemas.exercise_set import SetRead
from liftlog.schemas.progress import ExerciseProgress
from liftlog.schemas.session import SessionDetail, SessionExerciseRead
from liftlog.engine.gateway import SetMutationGateway

logger = logging.getLogger(__name__)


class SessionDataLoader:
    """Owns the current session snapshot.

    Snapshots are immutable; every change builds a new one and swaps it in
    whole, so readers never observe a half-applied mutation.
    """

    def __init__(self, gateway: SetMutationGateway, snapshot: SessionDetail | None = None):
        self.gateway = gateway
        self._snapshot = snapshot

    @property
    def snapshot(self) -> SessionDetail | None:
        return self._snapshot

    def load(self) -> SessionDetail | None:
        self._snapshot = self.gateway.fetch_active_session()
        if self._snapshot is not None:
            logger.info("loaded session %s with %d exercises",
                        self._snapshot.id, len(self._snapshot.exercises))
        return self._snapshot

    def replace(self, snapshot: SessionDetail | None) -> None:
        self._snapshot = snapshot

    def exercise(self, exercise_id: int) -> SessionExerciseRead | None:
        if self._snapshot is None:
            return None
        return find_exercise(self._snapshot, exercise_id)


def find_exercise(session: SessionDetail, exercise_id: int) -> SessionExerciseRead | None:
    return next((ex for ex in session.exercises if ex.exercise_id == exercise_id), None)


def _with_exercise(session: SessionDetail, exercise_id: int, **changes) -> SessionDetail:
    exercises = tuple(
        ex.model_copy(update=changes) if ex.exercise_id == exercise_id else ex
        for ex in session.exercises
    )
    return session.model_copy(update={"exercises": exercises})


def merge_progress(session: SessionDetail, progress: ExerciseProgress) -> SessionDetail:
    changes = {"status": progress.status}
    if progress.started_at is not None:
        changes["started_at"] = progress.started_at
    if progress.completed_at is not None:
        changes["completed_at"] = progress.completed_at
    return _with_exercise(session, progress.exercise_id, **changes)


def merge_set(session: SessionDetail, new_set: SetRead) -> SessionDetail:
    exercise = find_exercise(session, new_set.exercise_id)
    if exercise is None:
        return session
    sets = tuple(sorted((*exercise.sets, new_set), key=lambda s: s.set_index))
    return _with_exercise(session, new_set.exercise_id, sets=sets)


def replace_set(session: SessionDetail, updated: SetRead) -> SessionDetail:
    exercise = find_exercise(session, updated.exercise_id)
    if exercise is None:
        return session
    sets = tuple(updated if s.id == updated.id else s for s in exercise.sets)
    return _with_exercise(session, updated.exercise_id, sets=sets)


def drop_set(session: SessionDetail, set_id: int) -> SessionDetail:
    for exercise in session.exercises:
        if any(s.id == set_id for s in exercise.sets):
            sets = tuple(s for s in exercise.sets if s.id != set_id)
            return _with_exercise(session, exercise.exercise_id, sets=sets)
    return session


def find_set(session: SessionDetail, set_id: int) -> SetRead | None:
    for exercise in session.exercises:
        for s in exercise.sets:
            if s.id == set_id:
                return s
    return None
