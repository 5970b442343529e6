from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select
from liftlog.models import SessionExercise, ExerciseStatus
from liftlog.repositories.base import BaseRepository

class ExerciseProgressRepository(BaseRepository[SessionExercise]):
    model = SessionExercise

    def get(self, session_id: int, exercise_id: int) -> Optional[SessionExercise]:
        stmt = select(SessionExercise).where(
            SessionExercise.session_id == session_id,
            SessionExercise.exercise_id == exercise_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def start(self, exercise: SessionExercise, *, started_at: datetime | None) -> SessionExercise:
        # Restarting keeps the first start time and never reopens a completed exercise
        if exercise.started_at is None:
            exercise.started_at = started_at or datetime.now(timezone.utc)
        if exercise.status == ExerciseStatus.pending:
            exercise.status = ExerciseStatus.in_progress
        return self.save(exercise)

    def complete(self, exercise: SessionExercise, *, completed_at: datetime | None) -> SessionExercise:
        completed_at = completed_at or datetime.now(timezone.utc)
        if exercise.started_at is None:
            exercise.started_at = completed_at
        exercise.completed_at = completed_at
        exercise.status = ExerciseStatus.completed
        return self.save(exercise)
