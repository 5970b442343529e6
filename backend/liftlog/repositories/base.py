# liftlog/repositories/base.py
from __future__ import annotations
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")  # SQLAlchemy model type

class BaseRepository(Generic[T]):
    """Lightweight base for repositories using SQLAlchemy 2.0 style."""
    def __init__(self, db: Session):
        self.db = db

    def save(self, entity: T) -> T:
        """Commit pending changes on ``entity`` and reload it."""
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity
