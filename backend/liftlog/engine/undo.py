from __future__ import annotations
import time
from collections.abc import Callable
from dataclasses import dataclass

from liftlog.schemas.exercise_set import SetRead


@dataclass(frozen=True, slots=True)
class PendingDeletedSet:
    exercise_id: int
    deleted: SetRead
    expires_at: float


class UndoBuffer:
    """Holds the most recently deleted set for a short window.

    Only one deletion is held: a new one replaces the old and restarts the
    window. Expiry is checked on read, so a cleared buffer never fires.
    """

    def __init__(self, window_seconds: float, *, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._pending: PendingDeletedSet | None = None

    def push(self, exercise_id: int, deleted: SetRead) -> PendingDeletedSet:
        self._pending = PendingDeletedSet(exercise_id, deleted, self._clock() + self.window_seconds)
        return self._pending

    def peek(self) -> PendingDeletedSet | None:
        if self._pending is not None and self._clock() >= self._pending.expires_at:
            self._pending = None
        return self._pending

    @property
    def available(self) -> bool:
        return self.peek() is not None

    def clear(self) -> None:
        self._pending = None
