"""Request workflow API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from reqflow.api.deps import get_current_principal, get_workflow_service
from reqflow.api.schemas.requests import (
    RequestCreate,
    RequestHistoryResponse,
    RequestListResponse,
    RequestResponse,
)
from reqflow.core.workflow import Principal, WorkflowService
from reqflow.db.models import Request

router = APIRouter(prefix="/requests", tags=["requests"])


def _to_response(request: Request, principal: Principal) -> RequestResponse:
    actions = [a.value for a in WorkflowService.available_actions(request, principal)]
    return RequestResponse.model_validate(request).model_copy(update={"available_actions": actions})


@router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
def create_request(
    body: RequestCreate,
    service: WorkflowService = Depends(get_workflow_service),
    principal: Principal = Depends(get_current_principal),
):
    """Create a request for an employee; it is routed to their manager."""
    request = service.create_request(body.title, body.description, body.assigned_to, principal)
    return _to_response(request, principal)


@router.get("", response_model=RequestListResponse)
def list_requests(
    service: WorkflowService = Depends(get_workflow_service),
    principal: Principal = Depends(get_current_principal),
):
    """Requests in the caller's queue, newest first."""
    requests = service.list_requests(principal)
    return RequestListResponse(
        items=[_to_response(r, principal) for r in requests],
        total=len(requests),
    )


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(
    request_id: int,
    service: WorkflowService = Depends(get_workflow_service),
    principal: Principal = Depends(get_current_principal),
):
    """Get a specific request."""
    return _to_response(service.get_request(request_id, principal), principal)


@router.get("/{request_id}/history", response_model=List[RequestHistoryResponse])
def get_request_history(
    request_id: int,
    service: WorkflowService = Depends(get_workflow_service),
    principal: Principal = Depends(get_current_principal),
):
    """Get the state transition history for a request."""
    history = service.get_history(request_id, principal)
    return [RequestHistoryResponse.model_validate(h) for h in history]


@router.patch("/{request_id}/{action}", response_model=RequestResponse)
def apply_action(
    request_id: int,
    action: str,
    service: WorkflowService = Depends(get_workflow_service),
    principal: Principal = Depends(get_current_principal),
):
    """Approve, reject, act on or close a request."""
    request = service.apply_action(request_id, action, principal)
    return _to_response(request, principal)
