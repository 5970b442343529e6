from __future__ import annotations
from dataclasses import dataclass

from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.session import SessionDetail
from liftlog.engine.checklist import dedupe_sets


@dataclass(frozen=True, slots=True)
class SessionSummary:
    total_sets: int
    total_reps: int
    total_volume: float
    trained_exercises: int
    duration_seconds: int | None


def build_session_summary(session: SessionDetail) -> SessionSummary:
    """Set/rep/volume totals over a finalized session."""
    total_sets = total_reps = 0
    total_volume = 0.0
    trained = 0
    for exercise in session.exercises:
        sets = dedupe_sets(exercise)
        if sets or exercise.status == ExerciseStatus.completed:
            trained += 1
        for s in sets:
            total_sets += 1
            total_reps += s.reps
            total_volume += s.reps * (s.weight or 0)

    duration = None
    if session.ended_at is not None and session.ended_at >= session.started_at:
        duration = round((session.ended_at - session.started_at).total_seconds())
    return SessionSummary(total_sets, total_reps, total_volume, trained, duration)
