import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.models import User
from liftlog.schemas.user import UserRegister, UserLogin, UserRead, Token
from liftlog.security import hash_password, verify_password, create_access_token
from liftlog.deps.auth import get_current_user
from liftlog.repositories.user_repo import UserRepository

log = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

def _email_taken() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email already registered")

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    if repo.get_by_email(payload.email):
        raise _email_taken()
    try:
        user = repo.create(
            email=payload.email,
            name=payload.name,
            password_hash=hash_password(payload.password),
        )
    except ValueError as e:
        # Lost a race with a concurrent registration
        if str(e) == "email_already_exists":
            raise _email_taken()
        raise
    log.info("registered user %s", user.id)
    return user

@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = UserRepository(db).get_by_email(payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        log.warning("failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid credentials")
    return Token(access_token=create_access_token(sub=str(user.id)))

@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
