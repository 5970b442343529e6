from __future__ import annotations
from dataclasses import dataclass


class EngineError(Exception):
    """Base class for failures surfaced by the guided workout engine."""


@dataclass(frozen=True)
class ReadinessIssue:
    exercise_id: int
    name: str
    missing: tuple[str, ...]


class ValidationError(EngineError):
    """A session cannot begin because exercises lack required targets.

    Carries every offending exercise, never just the first one found.
    """

    def __init__(self, issues: list[ReadinessIssue]):
        self.issues = list(issues)
        details = "; ".join(f"{i.name} ({', '.join(i.missing)})" for i in self.issues)
        super().__init__(f"Cannot begin workout. Update routine targets for: {details}.")


class MutationFailure(EngineError):
    """A persistence call failed; the message is the collaborator's own."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
