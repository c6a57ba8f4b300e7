"""Error taxonomy for the request workflow."""

from typing import Optional


class WorkflowError(Exception):
    """Base class for errors raised by the workflow core."""

    code = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(WorkflowError):
    """Malformed or missing fields, self-assignment, or an invalid assignee."""

    code = "invalid_input"


class NotFound(WorkflowError):
    """Unknown request or user id."""

    code = "not_found"


class Unauthorized(WorkflowError):
    """The principal's role has no business performing the operation."""

    code = "unauthorized"


class Forbidden(Unauthorized):
    """The principal is not the designated manager/employee for the request."""

    code = "forbidden"


class InvalidTransition(WorkflowError):
    """The request's current status does not allow the requested action."""

    code = "invalid_transition"

    def __init__(self, message: str, from_state: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.from_state = from_state
        self.action = action


class RequestAlreadyRejected(InvalidTransition):
    """The request was rejected by its manager; nothing may follow."""

    code = "request_rejected"


class ConflictError(WorkflowError):
    """A concurrent transition changed the request's status first."""

    code = "conflict"


class StoreUnavailable(WorkflowError):
    """The transactional write failed and was rolled back."""

    code = "store_unavailable"


class InvalidCredentials(WorkflowError):
    """Email/password pair or token could not be verified."""

    code = "invalid_credentials"
