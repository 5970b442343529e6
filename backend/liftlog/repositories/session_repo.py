from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from liftlog.models import WorkoutSession, SessionExercise, SessionSet
from liftlog.schemas.session import SessionCreate
from liftlog.repositories.base import BaseRepository

class SessionRepository(BaseRepository[WorkoutSession]):
    model = WorkoutSession

    def get(self, session_id: int) -> Optional[WorkoutSession]:
        return self.db.get(WorkoutSession, session_id)

    def get_active(self, user_id: int) -> Optional[WorkoutSession]:
        stmt = select(WorkoutSession).where(
            WorkoutSession.user_id == user_id,
            WorkoutSession.ended_at.is_(None),
        ).order_by(WorkoutSession.started_at.desc(), WorkoutSession.id.desc()).limit(1)
        return self.db.execute(stmt).scalars().first()

    def list_by_user(self, user_id: int, *, limit: int = 50, offset: int = 0) -> list[dict]:
        """Sessions newest first, with set/rep/volume totals."""
        stmt = (
            select(
                WorkoutSession,
                func.count(SessionSet.id).label("total_sets"),
                func.coalesce(func.sum(SessionSet.reps), 0).label("total_reps"),
                func.coalesce(func.sum(SessionSet.reps * SessionSet.weight), 0).label("total_volume"),
            )
            .outerjoin(SessionExercise, SessionExercise.session_id == WorkoutSession.id)
            .outerjoin(SessionSet, SessionSet.session_exercise_id == SessionExercise.id)
            .where(WorkoutSession.user_id == user_id)
            .group_by(WorkoutSession.id)
            .order_by(WorkoutSession.started_at.desc(), WorkoutSession.id.desc())
            .limit(limit).offset(offset)
        )
        rows = []
        for sess, total_sets, total_reps, total_volume in self.db.execute(stmt).all():
            rows.append({
                "id": sess.id,
                "user_id": sess.user_id,
                "routine_id": sess.routine_id,
                "routine_name": sess.routine_name,
                "started_at": sess.started_at,
                "ended_at": sess.ended_at,
                "notes": sess.notes,
                "total_sets": total_sets,
                "total_reps": int(total_reps),
                "total_volume": float(total_volume),
            })
        return rows

    def create(self, user_id: int, *, payload: SessionCreate) -> WorkoutSession:
        if self.get_active(user_id) is not None:
            # Router maps this marker to 409
            raise ValueError("active_session_exists")
        sess = WorkoutSession(
            user_id=user_id,
            routine_id=payload.routine_id,
            routine_name=payload.routine_name,
            notes=payload.notes,
        )
        if payload.started_at is not None:
            sess.started_at = payload.started_at
        for order, ex in enumerate(payload.exercises):
            fields = ex.model_dump(exclude={"position"})
            sess.exercises.append(
                SessionExercise(**fields, position=order if ex.position is None else ex.position)
            )
        return self.save(sess)

    def update(self, sess: WorkoutSession, *, fields: dict) -> WorkoutSession:
        if "notes" in fields:
            sess.notes = fields["notes"]
        if "ended_at" in fields:
            sess.ended_at = fields["ended_at"] or datetime.now(timezone.utc)
        return self.save(sess)

    def delete(self, sess: WorkoutSession) -> None:
        self.db.delete(sess)
        self.db.commit()
