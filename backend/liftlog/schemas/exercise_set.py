from pydantic import BaseModel, model_validator

from liftlog.schemas.fields import UtcDatetime, PosInt, NonNegFloat, LabelStr
from liftlog.schemas.progress import ExerciseProgress

class SetCreate(BaseModel):
    exercise_id: int
    # Optional: if omitted, the server appends after the highest existing index
    set_index: PosInt | None = None
    reps: PosInt
    weight: NonNegFloat = 0
    band_label: LabelStr | None = None
    started_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None

class SetUpdate(BaseModel):
    reps: PosInt | None = None
    weight: NonNegFloat | None = None
    band_label: LabelStr | None = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("no set fields provided")
        for name in ("reps", "weight"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

class SetRead(BaseModel):
    # None until the server has acknowledged the set
    id: int | None = None
    exercise_id: int
    set_index: int
    reps: int
    weight: float = 0
    band_label: str | None = None
    started_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None
    created_at: UtcDatetime | None = None

    model_config = {"from_attributes": True, "frozen": True}

class SetCreated(BaseModel):
    set: SetRead
    exercise_progress: ExerciseProgress

class SetEnvelope(BaseModel):
    set: SetRead
