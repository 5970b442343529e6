from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.schemas.exercise_set import SetUpdate, SetEnvelope
from liftlog.schemas.session import Ack
from liftlog.models import SessionSet, User
from liftlog.repositories.set_repo import SetRepository
from liftlog.deps.auth import get_current_user, ensure_owner_or_privileged

router = APIRouter(prefix="/sets", tags=["sets"])

def _load_set(set_id: int, db: Session, current: User) -> SessionSet:
    s = SetRepository(db).get(set_id)
    if not s:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Set not found")
    # Ownership check via set -> exercise -> session -> user
    ensure_owner_or_privileged(s.exercise.session.user_id, current, what="set")
    return s

@router.put("/{set_id}", response_model=SetEnvelope)
def update_set(
    set_id: int,
    payload: SetUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    s = _load_set(set_id, db, current)
    updated = SetRepository(db).update(s, fields=payload.model_dump(exclude_unset=True))
    return {"set": updated}

@router.delete("/{set_id}", response_model=Ack)
def delete_set(set_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    s = _load_set(set_id, db, current)
    SetRepository(db).delete(s)
    return {"ok": True}
