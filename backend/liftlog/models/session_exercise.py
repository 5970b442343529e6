from datetime import datetime, timezone
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, ForeignKey, String, Numeric, DateTime, UniqueConstraint, Enum as SAEnum,
)
from liftlog.db import Base

class ExerciseStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"

class SessionExercise(Base):
    __tablename__ = "session_exercises"
    __table_args__ = (UniqueConstraint("session_id", "exercise_id", name="uq_session_exercise"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("sessions.id", ondelete="CASCADE"), index=True)
    exercise_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    equipment: Mapped[str | None] = mapped_column(String(60), nullable=True)

    # Prescription snapshot taken from the routine
    target_sets: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_reps_range: Mapped[str | None] = mapped_column(String(20), nullable=True)
    target_rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_weight: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    target_band_label: Mapped[str | None] = mapped_column(String(40), nullable=True)
    superset_group: Mapped[str | None] = mapped_column(String(40), nullable=True)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ExerciseStatus] = mapped_column(
        SAEnum(ExerciseStatus, name="exercise_status"),
        nullable=False,
        default=ExerciseStatus.pending,
        server_default=ExerciseStatus.pending.value,
    )
    started_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    session = relationship("WorkoutSession", back_populates="exercises")
    sets = relationship(
        "SessionSet",
        back_populates="exercise",
        cascade="all, delete-orphan",
        order_by="SessionSet.set_index",
    )

    @property
    def duration_seconds(self) -> int | None:
        if not self.started_at or not self.completed_at:
            return None
        started, completed = _utc(self.started_at), _utc(self.completed_at)
        if completed < started:
            return None
        return round((completed - started).total_seconds())


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
