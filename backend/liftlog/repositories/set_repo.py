from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, func
from liftlog.models import SessionSet, SessionExercise, ExerciseStatus
from liftlog.schemas.exercise_set import SetCreate
from liftlog.repositories.base import BaseRepository

class SetRepository(BaseRepository[SessionSet]):
    model = SessionSet

    def get(self, set_id: int) -> Optional[SessionSet]:
        return self.db.get(SessionSet, set_id)

    def create(self, exercise: SessionExercise, *, payload: SetCreate) -> SessionSet:
        set_index = payload.set_index
        if set_index is None:
            # Append after the highest index so deletes never cause collisions
            max_idx = self.db.execute(
                select(func.max(SessionSet.set_index)).where(SessionSet.session_exercise_id == exercise.id)
            ).scalar_one()
            set_index = (max_idx or 0) + 1
        elif self._index_taken(exercise, set_index):
            raise ValueError("set_index_taken")

        now = datetime.now(timezone.utc)
        s = SessionSet(
            session_exercise_id=exercise.id,
            set_index=set_index,
            reps=payload.reps,
            weight=payload.weight,
            band_label=payload.band_label,
            started_at=payload.started_at,
            completed_at=payload.completed_at or now,
        )
        # First logged set moves a pending exercise along
        if exercise.status == ExerciseStatus.pending:
            exercise.status = ExerciseStatus.in_progress
            exercise.started_at = exercise.started_at or payload.started_at or s.completed_at
        self.db.add(exercise)
        self.db.add(s)
        self.db.commit()
        self.db.refresh(s)
        self.db.refresh(exercise)
        return s

    def update(self, s: SessionSet, *, fields: dict) -> SessionSet:
        for key in ("reps", "weight", "band_label"):
            if key in fields:
                setattr(s, key, fields[key])
        return self.save(s)

    def delete(self, s: SessionSet) -> None:
        self.db.delete(s)
        self.db.commit()

    def _index_taken(self, exercise: SessionExercise, set_index: int) -> bool:
        stmt = select(SessionSet.id).where(
            SessionSet.session_exercise_id == exercise.id,
            SessionSet.set_index == set_index,
        )
        return self.db.execute(stmt).first() is not None
