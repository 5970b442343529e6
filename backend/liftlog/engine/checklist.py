"""Set checklist reconciliation.

Merges the user's local set taps with the sets the server has acknowledged
into one ordered list of display rows per exercise.
"""
from __future__ import annotations
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from liftlog.schemas.exercise_set import SetRead
from liftlog.schemas.session import SessionExerciseRead

logger = logging.getLogger(__name__)


class RowState(str, Enum):
    logged = "logged"
    checked_unsaved = "checked_unsaved"
    unchecked = "unchecked"


@dataclass(frozen=True, slots=True)
class ChecklistRow:
    set_index: int
    state: RowState
    persisted_set: SetRead | None = None
    checked_at: datetime | None = None

    @property
    def checked(self) -> bool:
        return self.state != RowState.unchecked


def set_identity(exercise_id: int, s: SetRead) -> tuple:
    if s.id is not None:
        return ("id", s.id)
    return ("key", exercise_id, s.set_index, s.created_at or s.completed_at)


def dedupe_sets(exercise: SessionExerciseRead) -> list[SetRead]:
    """Persisted sets with repeated identities dropped, first one wins."""
    seen: set[tuple] = set()
    unique: list[SetRead] = []
    for s in exercise.sets:
        key = set_identity(exercise.exercise_id, s)
        if key in seen:
            logger.debug("reconciliation anomaly: duplicate set %s on exercise %s",
                         key, exercise.exercise_id)
            continue
        seen.add(key)
        unique.append(s)
    return unique


def build_checklist_rows(
    exercise: SessionExerciseRead,
    taps: Mapping[int, datetime] | None = None,
) -> list[ChecklistRow]:
    taps = taps or {}
    persisted = dedupe_sets(exercise)
    target_sets = exercise.target_sets

    if not (isinstance(target_sets, int) and target_sets > 0):
        # No prescription: one row per logged set
        ordered = sorted(enumerate(persisted), key=lambda item: (item[1].set_index, item[0]))
        return [
            ChecklistRow(
                set_index=s.set_index,
                state=RowState.logged,
                persisted_set=s,
                checked_at=s.completed_at or s.created_at or s.started_at,
            )
            for _, s in ordered
        ]

    by_index: dict[int, SetRead] = {}
    for s in persisted:
        by_index.setdefault(s.set_index, s)

    rows = []
    for set_index in range(1, target_sets + 1):
        s = by_index.get(set_index)
        if s is not None:
            rows.append(ChecklistRow(
                set_index=set_index,
                state=RowState.logged,
                persisted_set=s,
                checked_at=s.completed_at or s.created_at or s.started_at,
            ))
        elif taps.get(set_index) is not None:
            rows.append(ChecklistRow(set_index, RowState.checked_unsaved, checked_at=taps[set_index]))
        else:
            rows.append(ChecklistRow(set_index, RowState.unchecked))
    return sorted(rows, key=lambda row: (row.set_index, row.state != RowState.logged))


class ChecklistStore:
    """Local set taps, keyed by exercise then set index.

    Entries are reconciliation aids only: a tap is superseded as soon as a
    real set exists at its index and is dropped when the exercise is
    completed or left.
    """

    def __init__(self) -> None:
        self._taps: dict[int, dict[int, datetime]] = {}

    def taps_for(self, exercise_id: int) -> dict[int, datetime]:
        return dict(self._taps.get(exercise_id, {}))

    def toggle(self, exercise_id: int, set_index: int, at: datetime) -> bool:
        """Flip the tap at ``set_index``; returns whether it is now checked."""
        taps = self._taps.setdefault(exercise_id, {})
        if set_index in taps:
            del taps[set_index]
            return False
        taps[set_index] = at
        return True

    def discard(self, exercise_id: int, set_index: int) -> None:
        self._taps.get(exercise_id, {}).pop(set_index, None)

    def clear(self, exercise_id: int | None = None) -> None:
        if exercise_id is None:
            self._taps.clear()
        else:
            self._taps.pop(exercise_id, None)
