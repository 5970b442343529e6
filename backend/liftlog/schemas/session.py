from typing import Annotated
from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator

from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.exercise_set import SetRead
from liftlog.schemas.fields import UtcDatetime, PosInt, NonNegInt, NonNegFloat, LabelStr

# Notes: trimmed, up to 500 chars
NotesStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]

class SessionExerciseCreate(BaseModel):
    exercise_id: int
    name: NameStr
    equipment: LabelStr | None = None
    target_sets: PosInt | None = None
    target_reps: PosInt | None = None
    target_reps_range: Annotated[str, StringConstraints(strip_whitespace=True, max_length=20)] | None = None
    target_rest_seconds: NonNegInt | None = None
    target_weight: NonNegFloat | None = None
    target_band_label: LabelStr | None = None
    superset_group: LabelStr | None = None
    # Defaults to the exercise's place in the list
    position: NonNegInt | None = None

    @field_validator("superset_group", "equipment", "target_band_label")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v or None

class SessionCreate(BaseModel):
    routine_id: int | None = None
    routine_name: NameStr | None = None
    notes: NotesStr | None = None
    started_at: UtcDatetime | None = None
    exercises: list[SessionExerciseCreate] = Field(default_factory=list)

    @field_validator("exercises")
    @classmethod
    def unique_exercises(cls, v: list[SessionExerciseCreate]) -> list[SessionExerciseCreate]:
        seen: set[int] = set()
        for ex in v:
            if ex.exercise_id in seen:
                raise ValueError(f"exercise {ex.exercise_id} appears more than once")
            seen.add(ex.exercise_id)
        return v

class SessionUpdate(BaseModel):
    notes: NotesStr | None = None
    ended_at: UtcDatetime | None = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("no session fields provided")
        return self

class SessionExerciseRead(BaseModel):
    exercise_id: int
    name: str
    equipment: str | None = None
    target_sets: int | None = None
    target_reps: int | None = None
    target_reps_range: str | None = None
    target_rest_seconds: int | None = None
    target_weight: float | None = None
    target_band_label: str | None = None
    superset_group: str | None = None
    position: int = 0
    status: ExerciseStatus = ExerciseStatus.pending
    started_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None
    sets: tuple[SetRead, ...] = ()

    model_config = {"from_attributes": True, "frozen": True}

class SessionDetail(BaseModel):
    id: int
    user_id: int | None = None
    routine_id: int | None = None
    routine_name: str | None = None
    started_at: UtcDatetime
    ended_at: UtcDatetime | None = None
    notes: str | None = None
    exercises: tuple[SessionExerciseRead, ...] = ()

    model_config = {"from_attributes": True, "frozen": True}

class SessionRead(BaseModel):
    id: int
    user_id: int
    routine_id: int | None = None
    routine_name: str | None = None
    started_at: UtcDatetime
    ended_at: UtcDatetime | None = None
    notes: str | None = None
    total_sets: int = 0
    total_reps: int = 0
    total_volume: float = 0

class ActiveSession(BaseModel):
    session: SessionDetail | None = None

class Ack(BaseModel):
    ok: bool = True
