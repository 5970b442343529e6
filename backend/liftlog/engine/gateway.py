"""Persistence boundary for the guided workout engine.

The engine only ever talks to a :class:`SetMutationGateway`. Two
implementations ship: one running the repositories in-process and one
speaking to the HTTP API through httpx.
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PayloadError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from liftlog.engine.errors import MutationFailure
from liftlog.models import WorkoutSession, SessionExercise, SessionSet
from liftlog.repositories.progress_repo import ExerciseProgressRepository
from liftlog.repositories.session_repo import SessionRepository
from liftlog.repositories.set_repo import SetRepository
from liftlog.schemas.exercise_set import SetCreate, SetCreated, SetEnvelope, SetRead, SetUpdate
from liftlog.schemas.progress import ExerciseProgress
from liftlog.schemas.session import ActiveSession, SessionDetail

logger = logging.getLogger(__name__)


class SetMutationGateway(Protocol):
    def fetch_active_session(self) -> SessionDetail | None: ...

    def start_exercise(self, session_id: int, exercise_id: int, started_at: datetime) -> ExerciseProgress: ...

    def complete_exercise(self, session_id: int, exercise_id: int, completed_at: datetime) -> ExerciseProgress: ...

    def add_set(self, session_id: int, payload: SetCreate) -> SetCreated: ...

    def update_set(self, set_id: int, payload: SetUpdate) -> SetRead: ...

    def delete_set(self, set_id: int) -> None: ...

    def end_session(self, session_id: int, ended_at: datetime, notes: str | None = None) -> SessionDetail: ...

    def cancel_session(self, session_id: int) -> None: ...


class RepositoryGateway:
    """In-process gateway over the SQLAlchemy repositories, bound to one user."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    @contextmanager
    def _translate(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise MutationFailure(str(e)) from e

    def _session(self, session_id: int) -> WorkoutSession:
        sess = SessionRepository(self.db).get(session_id)
        if sess is None or sess.user_id != self.user_id:
            raise MutationFailure("Session not found", status_code=404)
        return sess

    def _exercise(self, session_id: int, exercise_id: int) -> SessionExercise:
        self._session(session_id)
        exercise = ExerciseProgressRepository(self.db).get(session_id, exercise_id)
        if exercise is None:
            raise MutationFailure("Exercise not found in session", status_code=404)
        return exercise

    def _set(self, set_id: int) -> SessionSet:
        s = SetRepository(self.db).get(set_id)
        if s is None or s.exercise.session.user_id != self.user_id:
            raise MutationFailure("Set not found", status_code=404)
        return s

    def fetch_active_session(self) -> SessionDetail | None:
        with self._translate():
            sess = SessionRepository(self.db).get_active(self.user_id)
            return SessionDetail.model_validate(sess) if sess else None

    def start_exercise(self, session_id: int, exercise_id: int, started_at: datetime) -> ExerciseProgress:
        with self._translate():
            exercise = self._exercise(session_id, exercise_id)
            exercise = ExerciseProgressRepository(self.db).start(exercise, started_at=started_at)
            return ExerciseProgress.model_validate(exercise)

    def complete_exercise(self, session_id: int, exercise_id: int, completed_at: datetime) -> ExerciseProgress:
        with self._translate():
            exercise = self._exercise(session_id, exercise_id)
            exercise = ExerciseProgressRepository(self.db).complete(exercise, completed_at=completed_at)
            return ExerciseProgress.model_validate(exercise)

    def add_set(self, session_id: int, payload: SetCreate) -> SetCreated:
        with self._translate():
            exercise = self._exercise(session_id, payload.exercise_id)
            try:
                s = SetRepository(self.db).create(exercise, payload=payload)
            except ValueError as e:
                if str(e) == "set_index_taken":
                    raise MutationFailure("Set index already logged", status_code=409) from e
                raise
            return SetCreated(
                set=SetRead.model_validate(s),
                exercise_progress=ExerciseProgress.model_validate(exercise),
            )

    def update_set(self, set_id: int, payload: SetUpdate) -> SetRead:
        with self._translate():
            s = self._set(set_id)
            s = SetRepository(self.db).update(s, fields=payload.model_dump(exclude_unset=True))
            return SetRead.model_validate(s)

    def delete_set(self, set_id: int) -> None:
        with self._translate():
            SetRepository(self.db).delete(self._set(set_id))

    def end_session(self, session_id: int, ended_at: datetime, notes: str | None = None) -> SessionDetail:
        fields: dict[str, Any] = {"ended_at": ended_at}
        if notes is not None:
            fields["notes"] = notes
        with self._translate():
            sess = SessionRepository(self.db).update(self._session(session_id), fields=fields)
            return SessionDetail.model_validate(sess)

    def cancel_session(self, session_id: int) -> None:
        with self._translate():
            SessionRepository(self.db).delete(self._session(session_id))


class HttpGateway:
    """Gateway over the REST API.

    ``client`` is any ``httpx.Client`` pointed at the API (FastAPI's
    ``TestClient`` included).
    """

    def __init__(self, client: httpx.Client, *, token: str | None = None):
        self.client = client
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, url: str, json: Any = None) -> Any:
        try:
            r = self.client.request(method, url, json=json, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise MutationFailure(f"network error: {e}") from e
        if r.status_code // 100 != 2:
            raise MutationFailure(_error_detail(r), status_code=r.status_code)
        return r.json() if r.content else None

    def fetch_active_session(self) -> SessionDetail | None:
        return _parse(ActiveSession, self._request("GET", "/sessions/active")).session

    def start_exercise(self, session_id: int, exercise_id: int, started_at: datetime) -> ExerciseProgress:
        body = self._request(
            "POST",
            f"/sessions/{session_id}/exercises/{exercise_id}/start",
            json={"started_at": started_at.isoformat()},
        )
        return _parse(ExerciseProgress, body)

    def complete_exercise(self, session_id: int, exercise_id: int, completed_at: datetime) -> ExerciseProgress:
        body = self._request(
            "POST",
            f"/sessions/{session_id}/exercises/{exercise_id}/complete",
            json={"completed_at": completed_at.isoformat()},
        )
        return _parse(ExerciseProgress, body)

    def add_set(self, session_id: int, payload: SetCreate) -> SetCreated:
        body = self._request(
            "POST", f"/sessions/{session_id}/sets", json=payload.model_dump(mode="json", exclude_none=True)
        )
        return _parse(SetCreated, body)

    def update_set(self, set_id: int, payload: SetUpdate) -> SetRead:
        body = self._request("PUT", f"/sets/{set_id}", json=payload.model_dump(mode="json", exclude_unset=True))
        return _parse(SetEnvelope, body).set

    def delete_set(self, set_id: int) -> None:
        self._request("DELETE", f"/sets/{set_id}")

    def end_session(self, session_id: int, ended_at: datetime, notes: str | None = None) -> SessionDetail:
        payload: dict[str, Any] = {"ended_at": ended_at.isoformat()}
        if notes is not None:
            payload["notes"] = notes
        return _parse(SessionDetail, self._request("PUT", f"/sessions/{session_id}", json=payload))

    def cancel_session(self, session_id: int) -> None:
        self._request("DELETE", f"/sessions/{session_id}")


M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], body: Any) -> M:
    try:
        return model.model_validate(body)
    except PayloadError as e:
        raise MutationFailure(f"unexpected {model.__name__} response: {e.error_count()} invalid field(s)") from e


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        # FastAPI validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return f"api error: {r.status_code} {r.text}"
