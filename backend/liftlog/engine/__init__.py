from liftlog.engine.controller import Action, ActionResult, SessionController, SessionState
from liftlog.engine.errors import EngineError, MutationFailure, ValidationError
from liftlog.engine.gateway import HttpGateway, RepositoryGateway, SetMutationGateway
from liftlog.engine.loader import SessionDataLoader

__all__ = [
    "Action",
    "ActionResult",
    "SessionController",
    "SessionState",
    "EngineError",
    "MutationFailure",
    "ValidationError",
    "HttpGateway",
    "RepositoryGateway",
    "SetMutationGateway",
    "SessionDataLoader",
]
