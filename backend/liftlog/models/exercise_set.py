from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, String, Numeric, DateTime, UniqueConstraint, func
from liftlog.db import Base

class SessionSet(Base):
    __tablename__ = "session_sets"
    __table_args__ = (UniqueConstraint("session_exercise_id", "set_index", name="uq_session_set_index"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_exercise_id: Mapped[int] = mapped_column(
        ForeignKey("session_exercises.id", ondelete="CASCADE"), index=True
    )
    set_index: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    band_label: Mapped[str | None] = mapped_column(String(40), nullable=True)
    started_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    exercise = relationship("SessionExercise", back_populates="sets")

    @property
    def exercise_id(self) -> int:
        return self.exercise.exercise_id
