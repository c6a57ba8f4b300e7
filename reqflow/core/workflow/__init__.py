"""Request workflow module for reqflow.

Implements the request lifecycle state machine, its persistence and the
role-scoped read paths.
"""

from .states import (
    Role,
    RequestStatus,
    RequestAction,
    REQUEST_CREATED,
    TRANSITION_RULES,
    TERMINAL_STATES,
)
from .errors import (
    WorkflowError,
    InvalidInput,
    NotFound,
    Unauthorized,
    Forbidden,
    InvalidTransition,
    RequestAlreadyRejected,
    ConflictError,
    StoreUnavailable,
    InvalidCredentials,
)
from .principal import Principal
from .machine import RequestStateMachine, parse_action
from .store import RequestStore, HistoryLedger, Directory, DirectoryEntry
from .service import WorkflowService

__all__ = [
    "Role",
    "RequestStatus",
    "RequestAction",
    "REQUEST_CREATED",
    "TRANSITION_RULES",
    "TERMINAL_STATES",
    "WorkflowError",
    "InvalidInput",
    "NotFound",
    "Unauthorized",
    "Forbidden",
    "InvalidTransition",
    "RequestAlreadyRejected",
    "ConflictError",
    "StoreUnavailable",
    "InvalidCredentials",
    "Principal",
    "RequestStateMachine",
    "parse_action",
    "RequestStore",
    "HistoryLedger",
    "Directory",
    "DirectoryEntry",
    "WorkflowService",
]
