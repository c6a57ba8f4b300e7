"""Maps workflow errors to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from reqflow.api.schemas.common import ErrorResponse
from reqflow.core.logger import get_logger
from reqflow.core.workflow.errors import (
    ConflictError,
    InvalidCredentials,
    InvalidInput,
    InvalidTransition,
    NotFound,
    StoreUnavailable,
    Unauthorized,
    WorkflowError,
)

logger = get_logger(__name__)

# Checked in order; subclasses (Forbidden, RequestAlreadyRejected) resolve through their base
STATUS_CODES = [
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(exc: WorkflowError) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = ErrorResponse(error=exc.message, code=exc.code)
    return JSONResponse(status_code=code, content=body.model_dump())
