from __future__ import annotations
from collections.abc import Iterable

from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.session import SessionExerciseRead
from liftlog.engine.checklist import dedupe_sets


def is_completed(exercise: SessionExerciseRead) -> bool:
    """Completed by server status, or by having logged every target set.

    Both signals count: the set count reaches the target before the
    server-confirmed status comes back.
    """
    if exercise.status == ExerciseStatus.completed:
        return True
    target_sets = exercise.target_sets
    if isinstance(target_sets, int) and target_sets > 0:
        return len(dedupe_sets(exercise)) >= target_sets
    return False


def exercise_state(exercise: SessionExerciseRead) -> ExerciseStatus:
    if is_completed(exercise):
        return ExerciseStatus.completed
    if exercise.status == ExerciseStatus.in_progress or exercise.sets or exercise.started_at:
        return ExerciseStatus.in_progress
    return ExerciseStatus.pending


def session_progress(exercises: Iterable[SessionExerciseRead]) -> tuple[int, int]:
    """(completed, total) for the whole session."""
    exercises = list(exercises)
    return sum(1 for ex in exercises if is_completed(ex)), len(exercises)
