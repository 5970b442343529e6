"""Prescription checks and set payloads derived from an exercise's targets."""
from __future__ import annotations
import re
from collections.abc import Iterable

from liftlog.schemas.exercise_set import SetCreate
from liftlog.schemas.session import SessionExerciseRead
from liftlog.engine.checklist import ChecklistRow, RowState
from liftlog.engine.errors import ReadinessIssue, ValidationError

UNWEIGHTED_EQUIPMENT = {"bodyweight", "band", "ab wheel"}

_STRICT_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")
_LOOSE_RANGE = re.compile(r"(\d+)\D+(\d+)")


def normalize_equipment(value: str | None) -> str:
    return (value or "").strip().lower()


def weight_required(exercise: SessionExerciseRead) -> bool:
    return normalize_equipment(exercise.equipment) not in UNWEIGHTED_EQUIPMENT


def parse_range_min(value: str | None) -> int | None:
    if not value:
        return None
    match = _STRICT_RANGE.match(value.strip()) or _LOOSE_RANGE.search(value)
    return int(match.group(1)) if match else None


def resolve_target_reps(exercise: SessionExerciseRead) -> int | None:
    """Target rep count, falling back to the low end of a rep range."""
    if exercise.target_reps and exercise.target_reps > 0:
        return exercise.target_reps
    low = parse_range_min(exercise.target_reps_range)
    if low and low > 0:
        return low
    return None


def readiness_issues(exercises: Iterable[SessionExerciseRead]) -> list[ReadinessIssue]:
    issues = []
    for ex in exercises:
        missing = []
        if not (isinstance(ex.target_sets, int) and ex.target_sets > 0):
            missing.append("sets")
        if resolve_target_reps(ex) is None:
            missing.append("reps")
        if weight_required(ex) and ex.target_weight is None:
            missing.append("weight")
        if missing:
            issues.append(ReadinessIssue(ex.exercise_id, ex.name or "Exercise", tuple(missing)))
    return issues


def ensure_ready(exercises: Iterable[SessionExerciseRead]) -> None:
    issues = readiness_issues(exercises)
    if issues:
        raise ValidationError(issues)


def unsaved_set_payloads(
    exercise: SessionExerciseRead,
    rows: Iterable[ChecklistRow],
) -> list[SetCreate]:
    """add-set payloads for every tapped-but-unsaved checklist row."""
    rows = [row for row in rows if row.state == RowState.checked_unsaved]
    if not rows:
        return []
    reps = resolve_target_reps(exercise)
    if reps is None or (weight_required(exercise) and exercise.target_weight is None):
        raise ValidationError(readiness_issues([exercise]))

    equipment = normalize_equipment(exercise.equipment)
    weight = 0.0 if equipment in ("bodyweight", "band") else float(exercise.target_weight or 0)
    band_label = (exercise.target_band_label or None) if equipment == "band" else None
    return [
        SetCreate(
            exercise_id=exercise.exercise_id,
            set_index=row.set_index,
            reps=reps,
            weight=weight,
            band_label=band_label,
            started_at=row.checked_at,
            completed_at=row.checked_at,
        )
        for row in rows
    ]
