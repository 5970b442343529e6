from liftlog.models.user import User, UserRole
from liftlog.models.session import WorkoutSession
from liftlog.models.session_exercise import SessionExercise, ExerciseStatus
from liftlog.models.exercise_set import SessionSet

__all__ = [
    "User",
    "UserRole",
    "WorkoutSession",
    "SessionExercise",
    "ExerciseStatus",
    "SessionSet",
]
