"""Superset partner resolution.

A superset is exactly two session exercises tagged with the same
``superset_group``. Groups of any other size (usually the result of a bad
import) pair nothing; guided progression simply treats their members as
standalone exercises.
"""
from __future__ import annotations
from collections.abc import Iterable, Mapping

from liftlog.schemas.session import SessionExerciseRead


def normalize_superset_group(value: str | None) -> str | None:
    if not value:
        return None
    return value.strip() or None


def build_partner_lookup(exercises: Iterable[SessionExerciseRead]) -> dict[int, int]:
    """Map exercise id -> partner exercise id for every valid pair."""
    by_group: dict[str, list[int]] = {}
    for exercise in exercises:
        group = normalize_superset_group(exercise.superset_group)
        if group is None:
            continue
        by_group.setdefault(group, []).append(exercise.exercise_id)

    partners: dict[int, int] = {}
    for members in by_group.values():
        if len(members) != 2:
            continue
        a, b = members
        partners[a] = b
        partners[b] = a
    return partners


def partner_of(
    exercise_id: int,
    exercises: Iterable[SessionExerciseRead],
    lookup: Mapping[int, int] | None = None,
) -> SessionExerciseRead | None:
    exercises = list(exercises)
    if lookup is None:
        lookup = build_partner_lookup(exercises)
    partner_id = lookup.get(exercise_id)
    if partner_id is None:
        return None
    return next((ex for ex in exercises if ex.exercise_id == partner_id), None)
