"""Guided session lifecycle.

``SessionController`` is a small state machine (preview -> workout ->
ended/cancelled) driven by :class:`Action`. Every action returns an
:class:`ActionResult`; failed actions leave the controller where it was.
"""
from __future__ import annotations
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import ValidationError as PayloadError

from liftlog.models.session_exercise import ExerciseStatus
from liftlog.schemas.exercise_set import SetCreate, SetUpdate
from liftlog.schemas.session import SessionDetail, SessionExerciseRead
from liftlog.settings import get_settings
from liftlog.engine import loader as snapshots
from liftlog.engine.checklist import ChecklistRow, ChecklistStore, RowState, build_checklist_rows
from liftlog.engine.completion import exercise_state, is_completed, session_progress
from liftlog.engine.errors import EngineError, MutationFailure
from liftlog.engine.loader import SessionDataLoader
from liftlog.engine.navigator import first_pending, next_pending
from liftlog.engine.pairing import build_partner_lookup
from liftlog.engine.readiness import ensure_ready, resolve_target_reps, unsaved_set_payloads
from liftlog.engine.summary import SessionSummary, build_session_summary
from liftlog.engine.undo import UndoBuffer

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    preview = "preview"
    workout = "workout"
    ended = "ended"
    cancelled = "cancelled"


class Action(str, Enum):
    begin = "begin"
    toggle_set = "toggle_set"
    finish_exercise = "finish_exercise"
    skip_exercise = "skip_exercise"
    log_set = "log_set"
    update_set = "update_set"
    delete_set = "delete_set"
    undo_delete_set = "undo_delete_set"
    end_session = "end_session"
    cancel_session = "cancel_session"


LIVE = frozenset({SessionState.preview, SessionState.workout})

ALLOWED_STATES: dict[Action, frozenset[SessionState]] = {
    Action.begin: frozenset({SessionState.preview}),
    Action.finish_exercise: frozenset({SessionState.workout}),
    Action.skip_exercise: frozenset({SessionState.workout}),
    Action.toggle_set: LIVE,
    Action.log_set: LIVE,
    Action.update_set: LIVE,
    Action.delete_set: LIVE,
    Action.undo_delete_set: LIVE,
    Action.end_session: LIVE,
    Action.cancel_session: LIVE,
}


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    state: SessionState
    message: str = ""
    needs_confirmation: bool = False
    current_exercise_id: int | None = None
    summary: SessionSummary | None = None


@dataclass(frozen=True)
class ExerciseView:
    exercise: SessionExerciseRead
    status: ExerciseStatus
    rows: list[ChecklistRow] = field(default_factory=list)
    target_reps: int | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    def __init__(
        self,
        loader: SessionDataLoader,
        *,
        undo_window: float | None = None,
        now: Callable[[], datetime] = _utcnow,
        clock: Callable[[], float] = time.monotonic,
    ):
        if loader.snapshot is None:
            raise ValueError("controller needs a loaded session")
        self.loader = loader
        self.gateway = loader.gateway
        self.now = now
        if undo_window is None:
            undo_window = get_settings().UNDO_WINDOW_SECONDS
        self.undo = UndoBuffer(undo_window, clock=clock)
        self.checklist_taps = ChecklistStore()
        self.state = SessionState.preview
        self.current_exercise_id: int | None = None

        # Resume where a previous client left off
        resumable = [
            ex for ex in self.session.exercises
            if ex.status == ExerciseStatus.in_progress and not is_completed(ex)
        ]
        if resumable:
            self.state = SessionState.workout
            self.current_exercise_id = min(resumable, key=lambda ex: ex.position).exercise_id

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def session(self) -> SessionDetail:
        return self.loader.snapshot

    @property
    def current(self) -> SessionExerciseRead | None:
        if self.current_exercise_id is None or self.session is None:
            return None
        return self.loader.exercise(self.current_exercise_id)

    @property
    def partner(self) -> SessionExerciseRead | None:
        if self.current is None:
            return None
        partner_id = build_partner_lookup(self.session.exercises).get(self.current.exercise_id)
        return None if partner_id is None else self.loader.exercise(partner_id)

    def checklist(self, exercise_id: int) -> list[ChecklistRow]:
        exercise = self.loader.exercise(exercise_id)
        if exercise is None:
            return []
        return build_checklist_rows(exercise, self.checklist_taps.taps_for(exercise_id))

    def view(self, exercise: SessionExerciseRead | None) -> ExerciseView | None:
        if exercise is None:
            return None
        return ExerciseView(
            exercise=exercise,
            status=exercise_state(exercise),
            rows=self.checklist(exercise.exercise_id),
            target_reps=resolve_target_reps(exercise),
        )

    def progress(self) -> tuple[int, int]:
        if self.session is None:
            return 0, 0
        return session_progress(self.session.exercises)

    @property
    def can_undo(self) -> bool:
        return self.state in LIVE and self.undo.available

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action, **kwargs: Any) -> ActionResult:
        if self.state not in ALLOWED_STATES[action]:
            return self._fail(f"Cannot {action.value.replace('_', ' ')} while the session is {self.state.value}.")
        handler = getattr(self, f"_do_{action.value}")
        try:
            return handler(**kwargs)
        except EngineError as e:
            logger.warning("%s failed on session %s: %s", action.value, self.session and self.session.id, e)
            return self._fail(str(e))
        except PayloadError as e:
            message = _describe(e)
            logger.warning("%s rejected on session %s: %s", action.value, self.session and self.session.id, message)
            return self._fail(message)

    def begin(self) -> ActionResult:
        return self.dispatch(Action.begin)

    def toggle_set(self, exercise_id: int, set_index: int) -> ActionResult:
        return self.dispatch(Action.toggle_set, exercise_id=exercise_id, set_index=set_index)

    def finish_exercise(self) -> ActionResult:
        return self.dispatch(Action.finish_exercise)

    def skip_exercise(self) -> ActionResult:
        return self.dispatch(Action.skip_exercise)

    def log_set(self, exercise_id: int, *, reps: int, weight: float = 0,
                band_label: str | None = None) -> ActionResult:
        return self.dispatch(Action.log_set, exercise_id=exercise_id, reps=reps,
                             weight=weight, band_label=band_label)

    def update_set(self, set_id: int, **fields: Any) -> ActionResult:
        return self.dispatch(Action.update_set, set_id=set_id, fields=fields)

    def delete_set(self, set_id: int) -> ActionResult:
        return self.dispatch(Action.delete_set, set_id=set_id)

    def undo_delete_set(self) -> ActionResult:
        return self.dispatch(Action.undo_delete_set)

    def end_session(self, *, forced: bool = False, notes: str | None = None) -> ActionResult:
        return self.dispatch(Action.end_session, forced=forced, notes=notes)

    def cancel_session(self) -> ActionResult:
        return self.dispatch(Action.cancel_session)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _do_begin(self) -> ActionResult:
        ensure_ready(self.session.exercises)
        target = first_pending(self.session.exercises)
        if target is None:
            return self._fail("Every exercise in this session is already completed.")
        snapshot = self._start(self.session, target)
        self._commit(snapshot)
        self.state = SessionState.workout
        self.current_exercise_id = target.exercise_id
        logger.info("session %s: began with exercise %s", self.session.id, target.exercise_id)
        return self._ok()

    def _do_toggle_set(self, exercise_id: int, set_index: int) -> ActionResult:
        exercise = self.loader.exercise(exercise_id)
        if exercise is None:
            return self._fail("Exercise not found in session.")
        rows = {row.set_index: row for row in self.checklist(exercise_id)}
        row = rows.get(set_index)
        if row is None:
            return self._fail(f"Set {set_index} is not part of this exercise.")
        if row.state == RowState.logged:
            # Logged sets are edited or deleted, not untapped
            return self._ok()
        self.checklist_taps.toggle(exercise_id, set_index, self.now())
        return self._ok()

    def _do_finish_exercise(self) -> ActionResult:
        current = self.current
        payloads = unsaved_set_payloads(current, self.checklist(current.exercise_id))

        # Strictly one write at a time; stop at the first failure
        snapshot = self.session
        for payload in payloads:
            try:
                created = self.gateway.add_set(self.session.id, payload)
            except MutationFailure:
                self._keep_acknowledged(snapshot, current.exercise_id)
                raise
            snapshot = snapshots.merge_set(snapshot, created.set)
            snapshot = snapshots.merge_progress(snapshot, created.exercise_progress)

        try:
            progress = self.gateway.complete_exercise(self.session.id, current.exercise_id, self.now())
        except MutationFailure:
            self._keep_acknowledged(snapshot, current.exercise_id)
            raise
        snapshot = snapshots.merge_progress(snapshot, progress)
        self.checklist_taps.clear(current.exercise_id)
        self._commit(snapshot)
        logger.info("session %s: finished exercise %s (%d sets written)",
                    self.session.id, current.exercise_id, len(payloads))
        return self._advance_from(current.exercise_id)

    def _do_skip_exercise(self) -> ActionResult:
        current = self.current
        # A superset is skipped as a unit
        skipped = [current]
        partner = self.partner
        if partner is not None and not is_completed(partner):
            skipped.append(partner)

        snapshot = self.session
        for exercise in skipped:
            try:
                progress = self.gateway.complete_exercise(self.session.id, exercise.exercise_id, self.now())
            except MutationFailure:
                # Keep completions the server already accepted; stay on current
                if snapshot is not self.session:
                    self._commit(snapshot)
                raise
            snapshot = snapshots.merge_progress(snapshot, progress)
            self.checklist_taps.clear(exercise.exercise_id)
        self._commit(snapshot)
        logger.info("session %s: skipped %s", self.session.id, [ex.exercise_id for ex in skipped])
        return self._advance_from(current.exercise_id)

    def _do_log_set(self, exercise_id: int, reps: int, weight: float = 0,
                    band_label: str | None = None) -> ActionResult:
        if self.loader.exercise(exercise_id) is None:
            return self._fail("Exercise not found in session.")
        payload = SetCreate(
            exercise_id=exercise_id,
            reps=reps,
            weight=weight,
            band_label=band_label,
            completed_at=self.now(),
        )
        created = self.gateway.add_set(self.session.id, payload)
        snapshot = snapshots.merge_set(self.session, created.set)
        self._commit(snapshots.merge_progress(snapshot, created.exercise_progress))
        self.checklist_taps.discard(exercise_id, created.set.set_index)
        return self._ok()

    def _do_update_set(self, set_id: int, fields: dict[str, Any]) -> ActionResult:
        if snapshots.find_set(self.session, set_id) is None:
            return self._fail("Set not found.")
        updated = self.gateway.update_set(set_id, SetUpdate(**fields))
        self._commit(snapshots.replace_set(self.session, updated))
        return self._ok()

    def _do_delete_set(self, set_id: int) -> ActionResult:
        deleted = snapshots.find_set(self.session, set_id)
        if deleted is None:
            return self._fail("Set not found.")
        self.gateway.delete_set(set_id)
        self._commit(snapshots.drop_set(self.session, set_id))
        self.undo.push(deleted.exercise_id, deleted)
        return self._ok()

    def _do_undo_delete_set(self) -> ActionResult:
        pending = self.undo.peek()
        if pending is None:
            return self._fail("Nothing to undo.")
        deleted = pending.deleted
        exercise = self.loader.exercise(pending.exercise_id)
        if exercise is None:
            self.undo.clear()
            return self._fail("Exercise not found in session.")
        # Keep the old slot only while it is still free; otherwise the server appends
        taken = {s.set_index for s in exercise.sets}
        payload = SetCreate(
            exercise_id=pending.exercise_id,
            set_index=None if deleted.set_index in taken else deleted.set_index,
            reps=deleted.reps,
            weight=deleted.weight,
            band_label=deleted.band_label,
            started_at=deleted.started_at,
            completed_at=deleted.completed_at,
        )
        try:
            created = self.gateway.add_set(self.session.id, payload)
        except MutationFailure as e:
            if e.status_code != 409 or payload.set_index is None:
                raise
            # Slot was filled elsewhere since the last load
            created = self.gateway.add_set(self.session.id, payload.model_copy(update={"set_index": None}))
        snapshot = snapshots.merge_set(self.session, created.set)
        self._commit(snapshots.merge_progress(snapshot, created.exercise_progress))
        self.undo.clear()
        return self._ok()

    def _do_end_session(self, forced: bool = False, notes: str | None = None) -> ActionResult:
        done, total = self.progress()
        if not forced and done < total:
            return ActionResult(
                ok=False,
                state=self.state,
                message=f"{total - done} of {total} exercises are not completed. End the workout anyway?",
                needs_confirmation=True,
                current_exercise_id=self.current_exercise_id,
            )
        finalized = self.gateway.end_session(self.session.id, self.now(), notes)
        self._commit(finalized)
        self.state = SessionState.ended
        self.current_exercise_id = None
        self.checklist_taps.clear()
        self.undo.clear()
        summary = build_session_summary(finalized)
        logger.info("session %s: ended (%d sets, %d reps, %.1f volume)",
                    finalized.id, summary.total_sets, summary.total_reps, summary.total_volume)
        return self._ok(summary=summary)

    def _do_cancel_session(self) -> ActionResult:
        session_id = self.session.id
        self.gateway.cancel_session(session_id)
        self._commit(None)
        self.state = SessionState.cancelled
        self.current_exercise_id = None
        self.checklist_taps.clear()
        self.undo.clear()
        logger.info("session %s: cancelled", session_id)
        return self._ok()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _start(self, snapshot: SessionDetail, exercise: SessionExerciseRead) -> SessionDetail:
        progress = self.gateway.start_exercise(snapshot.id, exercise.exercise_id, self.now())
        return snapshots.merge_progress(snapshot, progress)

    def _advance_from(self, exercise_id: int) -> ActionResult:
        previous = self.loader.exercise(exercise_id)
        nxt = next_pending(previous, self.session.exercises)
        if nxt is None:
            return self._do_end_session(forced=True)
        self._commit(self._start(self.session, nxt))
        self.current_exercise_id = nxt.exercise_id
        return self._ok()

    def _keep_acknowledged(self, snapshot: SessionDetail, exercise_id: int) -> None:
        """Keep sets the server already accepted; drop their local taps."""
        if snapshot is self.session:
            return
        exercise = snapshots.find_exercise(snapshot, exercise_id)
        for s in exercise.sets if exercise else ():
            self.checklist_taps.discard(exercise_id, s.set_index)
        self._commit(snapshot)

    def _commit(self, snapshot: SessionDetail | None) -> None:
        self.loader.replace(snapshot)

    def _ok(self, **extra: Any) -> ActionResult:
        return ActionResult(ok=True, state=self.state, current_exercise_id=self.current_exercise_id, **extra)

    def _fail(self, message: str) -> ActionResult:
        return ActionResult(ok=False, state=self.state, message=message,
                            current_exercise_id=self.current_exercise_id)


def _describe(error: PayloadError) -> str:
    """One line per rejected field, e.g. ``reps: Input should be greater than or equal to 1``."""
    parts = []
    for err in error.errors():
        where = ".".join(str(part) for part in err["loc"]) or "set"
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)
