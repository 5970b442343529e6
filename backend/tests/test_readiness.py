from datetime import datetime, timezone

import pytest

from liftlog.engine.checklist import build_checklist_rows
from liftlog.engine.errors import ValidationError
from liftlog.engine.readiness import (
    ensure_ready, parse_range_min, readiness_issues, resolve_target_reps, unsaved_set_payloads,
)

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

def test_range_parsing():
    assert parse_range_min("8-12") == 8
    assert parse_range_min(" 6 - 10 ") == 6
    assert parse_range_min("10 to 15") == 10
    assert parse_range_min("AMRAP") is None
    assert parse_range_min(None) is None

def test_target_reps_falls_back_to_range(make_exercise):
    assert resolve_target_reps(make_exercise(1, target_reps=5)) == 5
    assert resolve_target_reps(make_exercise(1, target_reps=None, target_reps_range="8-12")) == 8
    assert resolve_target_reps(make_exercise(1, target_reps=None)) is None

def test_unweighted_equipment_needs_no_weight(make_exercise):
    exercises = [
        make_exercise(1, equipment="Bodyweight", target_weight=None),
        make_exercise(2, equipment="band", target_weight=None),
        make_exercise(3, equipment="Ab Wheel", target_weight=None),
    ]
    assert readiness_issues(exercises) == []
    ensure_ready(exercises)

def test_every_offender_is_named(make_exercise):
    exercises = [
        make_exercise(1, name="Bench Press", target_weight=None),
        make_exercise(2, name="Pull Up", equipment="Bodyweight"),
        make_exercise(3, name="Squat", target_sets=None, target_reps=None),
    ]
    with pytest.raises(ValidationError) as exc:
        ensure_ready(exercises)
    message = str(exc.value)
    assert "Bench Press (weight)" in message
    assert "Squat (sets, reps)" in message
    assert "Pull Up" not in message
    assert [i.exercise_id for i in exc.value.issues] == [1, 3]

def test_payloads_for_tapped_rows(make_exercise, make_set):
    ex = make_exercise(1, target_sets=3, target_reps=8, target_weight=62.5, sets=[make_set(1, 1, id=10)])
    rows = build_checklist_rows(ex, {1: T0, 3: T0})
    payloads = unsaved_set_payloads(ex, rows)
    assert [p.set_index for p in payloads] == [3]
    assert payloads[0].reps == 8
    assert payloads[0].weight == 62.5
    assert payloads[0].started_at == payloads[0].completed_at == T0

def test_band_payload_carries_label_and_zero_weight(make_exercise):
    ex = make_exercise(1, equipment="Band", target_weight=None, target_band_label="Red")
    payloads = unsaved_set_payloads(ex, build_checklist_rows(ex, {2: T0}))
    assert payloads[0].weight == 0
    assert payloads[0].band_label == "Red"

def test_payloads_need_resolvable_targets(make_exercise):
    ex = make_exercise(1, target_weight=None)
    with pytest.raises(ValidationError):
        unsaved_set_payloads(ex, build_checklist_rows(ex, {1: T0}))
    assert unsaved_set_payloads(ex, build_checklist_rows(ex)) == []
