# liftlog/deps/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose.exceptions import ExpiredSignatureError, JWTError

from liftlog.db import get_db
from liftlog.models import User
from liftlog.security import decode_token

# Exposes Bearer auth in Swagger; login endpoint issues the token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    unauth = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        sub = payload.get("sub")
        if sub is None:
            raise unauth
        user = db.get(User, int(sub))
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise unauth

    if not user:
        raise unauth
    return user

def ensure_owner_or_privileged(owner_id: int, current_user: User, *, what: str = "session") -> None:
    """
    Owner-or-coach style guard for session-scoped resources.

    Allows if:
      - current_user.id == owner_id
      - OR current_user is a coach or admin
    """
    if owner_id == current_user.id or current_user.is_privileged:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not allowed for this {what}")
