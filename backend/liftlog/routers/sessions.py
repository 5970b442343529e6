from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.schemas.session import (
    SessionCreate, SessionUpdate, SessionDetail, SessionRead, ActiveSession, Ack,
)
from liftlog.schemas.progress import ExerciseStart, ExerciseComplete, ExerciseProgress
from liftlog.schemas.exercise_set import SetCreate, SetCreated
from liftlog.models import WorkoutSession, SessionExercise, User
from liftlog.repositories.session_repo import SessionRepository
from liftlog.repositories.progress_repo import ExerciseProgressRepository
from liftlog.repositories.set_repo import SetRepository
from liftlog.deps.auth import get_current_user, ensure_owner_or_privileged

router = APIRouter(prefix="/sessions", tags=["sessions"])

def _load_session(session_id: int, db: Session, current: User) -> WorkoutSession:
    sess = SessionRepository(db).get(session_id)
    if not sess:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    ensure_owner_or_privileged(sess.user_id, current)
    return sess

def _load_exercise(session_id: int, exercise_id: int, db: Session, current: User) -> SessionExercise:
    _load_session(session_id, db, current)
    exercise = ExerciseProgressRepository(db).get(session_id, exercise_id)
    if not exercise:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found in session")
    return exercise

@router.post("", response_model=SessionDetail, status_code=status.HTTP_201_CREATED)
def start_session(payload: SessionCreate, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    try:
        sess = SessionRepository(db).create(user_id=current.id, payload=payload)
    except ValueError as e:
        if str(e) == "active_session_exists":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An active session already exists")
        raise
    return sess

@router.get("", response_model=list[SessionRead])
def list_my_sessions(
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    return SessionRepository(db).list_by_user(current.id, limit=limit, offset=offset)

@router.get("/active", response_model=ActiveSession)
def get_active_session(db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    return {"session": SessionRepository(db).get_active(current.id)}

@router.get("/{session_id}", response_model=SessionDetail)
def get_session(session_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    return _load_session(session_id, db, current)

@router.put("/{session_id}", response_model=SessionDetail)
def update_session(
    session_id: int,
    payload: SessionUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    sess = _load_session(session_id, db, current)
    return SessionRepository(db).update(sess, fields=payload.model_dump(exclude_unset=True))

@router.delete("/{session_id}", response_model=Ack)
def cancel_session(session_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    sess = _load_session(session_id, db, current)
    SessionRepository(db).delete(sess)
    return {"ok": True}

@router.post("/{session_id}/exercises/{exercise_id}/start", response_model=ExerciseProgress)
def start_exercise(
    session_id: int,
    exercise_id: int,
    payload: ExerciseStart,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    exercise = _load_exercise(session_id, exercise_id, db, current)
    return ExerciseProgressRepository(db).start(exercise, started_at=payload.started_at)

@router.post("/{session_id}/exercises/{exercise_id}/complete", response_model=ExerciseProgress)
def complete_exercise(
    session_id: int,
    exercise_id: int,
    payload: ExerciseComplete,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    exercise = _load_exercise(session_id, exercise_id, db, current)
    return ExerciseProgressRepository(db).complete(exercise, completed_at=payload.completed_at)

@router.post("/{session_id}/sets", response_model=SetCreated, status_code=status.HTTP_201_CREATED)
def add_set(
    session_id: int,
    payload: SetCreate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    exercise = _load_exercise(session_id, payload.exercise_id, db, current)
    try:
        new_set = SetRepository(db).create(exercise, payload=payload)
    except ValueError as e:
        if str(e) == "set_index_taken":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Set index already logged")
        raise
    return {"set": new_set, "exercise_progress": exercise}
