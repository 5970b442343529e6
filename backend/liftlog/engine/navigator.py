from __future__ import annotations
from collections.abc import Iterable, Mapping

from liftlog.schemas.session import SessionExerciseRead
from liftlog.engine.completion import is_completed
from liftlog.engine.pairing import build_partner_lookup


def pending_exercises(
    exercises: Iterable[SessionExerciseRead],
    *,
    exclude: int | None = None,
) -> list[SessionExerciseRead]:
    """Exercises still to do, ordered by position."""
    pending = [
        ex for ex in exercises
        if ex.exercise_id != exclude and not is_completed(ex)
    ]
    return sorted(pending, key=lambda ex: ex.position)


def next_pending(
    current: SessionExerciseRead | None,
    exercises: Iterable[SessionExerciseRead],
    *,
    partners: Mapping[int, int] | None = None,
) -> SessionExerciseRead | None:
    """Pick the exercise to work on after ``current``.

    An outstanding superset partner always comes first, even when other
    exercises sit between the pair by position. Otherwise the first pending
    exercise after ``current`` by position, wrapping around to the start.
    Returns None when nothing is left.
    """
    exercises = list(exercises)
    if current is None:
        pending = pending_exercises(exercises)
        return pending[0] if pending else None

    pending = pending_exercises(exercises, exclude=current.exercise_id)
    if not pending:
        return None

    if partners is None:
        partners = build_partner_lookup(exercises)
    partner_id = partners.get(current.exercise_id)
    if partner_id is not None:
        for ex in pending:
            if ex.exercise_id == partner_id:
                return ex

    for ex in pending:
        if ex.position > current.position:
            return ex
    return pending[0]


def first_pending(exercises: Iterable[SessionExerciseRead]) -> SessionExerciseRead | None:
    return next_pending(None, exercises)
