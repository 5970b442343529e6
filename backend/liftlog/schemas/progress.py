from pydantic import BaseModel

from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.fields import UtcDatetime

class ExerciseStart(BaseModel):
    # Server clock is used when omitted
    started_at: UtcDatetime | None = None

class ExerciseComplete(BaseModel):
    completed_at: UtcDatetime | None = None

class ExerciseProgress(BaseModel):
    """Partial progress record returned by start/complete and add-set."""
    exercise_id: int
    status: ExerciseStatus
    started_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None
    duration_seconds: int | None = None

    model_config = {"from_attributes": True, "frozen": True}
