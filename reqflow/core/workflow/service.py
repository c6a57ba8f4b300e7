"""Request workflow service.

Provides the operations callers use: creating requests, applying lifecycle
actions, and the role-scoped read paths. Every status change is written
together with its history entry in one transaction.
"""

from typing import List, Optional, Union

from sqlalchemy.orm import Session

from reqflow.core.logger import get_logger
from reqflow.db.models import Request, RequestHistory

from .errors import (
    ConflictError,
    Forbidden,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unauthorized,
)
from .machine import RequestStateMachine, parse_action
from .principal import Principal
from .states import (
    LISTING_VISIBILITY,
    REQUEST_CREATED,
    RequestAction,
    Role,
)
from .store import Directory, HistoryLedger, RequestStore

logger = get_logger(__name__)


class WorkflowService:
    """
    High-level service for the request lifecycle.

    Handles:
    - Creating requests assigned to an employee
    - Applying APPROVE / REJECT / ACTION / CLOSE with audit entries
    - Listing and fetching requests with per-role visibility
    """

    def __init__(
        self,
        db: Session,
        *,
        store: Optional[RequestStore] = None,
        ledger: Optional[HistoryLedger] = None,
        directory: Optional[Directory] = None,
    ):
        """
        Initialize the workflow service.

        Args:
            db: Database session shared by the store, ledger and directory
        """
        self.db = db
        self.store = store or RequestStore(db)
        self.ledger = ledger or HistoryLedger(db)
        self.directory = directory or Directory(db)

    def create_request(
        self,
        title: Optional[str],
        description: Optional[str],
        assigned_to: Optional[int],
        creator: Principal,
    ) -> Request:
        """
        Create a request awaiting approval by the assignee's manager.

        Raises:
            InvalidInput: On missing fields, self-assignment, or an assignee
                that is not an employee with a manager
        """
        missing = []
        if not title or not str(title).strip():
            missing.append("title")
        if not description or not str(description).strip():
            missing.append("description")
        if assigned_to is None or assigned_to == "":
            missing.append("assigned_to")
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

        try:
            assignee_id = int(assigned_to)
        except (TypeError, ValueError):
            raise InvalidInput("assigned_to must be a user id") from None

        if assignee_id == creator.id:
            raise InvalidInput("Request can't be assigned to yourself")

        try:
            assignee = self.directory.resolve(assignee_id)
        except NotFound:
            raise InvalidInput("Assigned user does not exist") from None

        if assignee.role != Role.EMPLOYEE:
            raise InvalidInput("You can only assign requests to employees")
        if assignee.manager_id is None:
            raise InvalidInput("Request can't be assigned, employee has no manager")

        with self.store.transaction():
            request = self.store.create(
                title=title,
                description=description,
                created_by=creator.id,
                assigned_to=assignee_id,
                manager_id=assignee.manager_id,
            )
            self.ledger.append(request.id, creator.id, REQUEST_CREATED)

        logger.info(
            "Request %s created by user %s for employee %s (manager %s)",
            request.id, creator.id, assignee_id, assignee.manager_id,
        )
        return request

    def apply_action(
        self,
        request_id: int,
        action: Union[str, RequestAction],
        principal: Principal,
    ) -> Request:
        """
        Perform a lifecycle action on a request.

        Args:
            request_id: ID of the request
            action: Action token (case-insensitive) or ``RequestAction``
            principal: Acting user

        Returns:
            The updated request

        Raises:
            InvalidInput: If the action token is unknown
            NotFound: If the request does not exist
            Unauthorized / Forbidden: If the principal may not act on it
            InvalidTransition: If the current status does not allow it
            ConflictError: If a concurrent writer won and the action is
                still valid against the committed state
            StoreUnavailable: If the write could not be committed
        """
        action = parse_action(action)

        try:
            request = self._transition(request_id, action, principal)
        except ConflictError:
            logger.warning(
                "Concurrent update on request %s while applying %s, re-checking",
                request_id, action.value,
            )
            # Let the committed state decide between InvalidTransition and conflict
            with self.store.transaction():
                current = self.store.get(request_id)
                RequestStateMachine(current, principal).resolve(action)
            raise
        except (Unauthorized, InvalidTransition) as e:
            logger.warning(
                "User %s (%s) refused %s on request %s: %s",
                principal.id, principal.role.value, action.value, request_id, e,
            )
            raise

        logger.info(
            "Request %s moved to %s by user %s", request.id, request.status, principal.id
        )
        return request

    def _transition(self, request_id: int, action: RequestAction, principal: Principal) -> Request:
        with self.store.transaction():
            current = self.store.get(request_id, for_update=True)
            rule = RequestStateMachine(current, principal).resolve(action)

            request = self.store.transition(current.id, rule.from_state, rule.to_state)
            self.ledger.append(current.id, principal.id, rule.to_state.value)
        return request

    def list_requests(self, principal: Principal) -> List[Request]:
        """
        Requests the principal should see in their queue, newest first.

        Managers see what is awaiting or has received their decision;
        employees see what is approved or in progress.
        """
        visible = [status.value for status in LISTING_VISIBILITY[principal.role]]
        if principal.role == Role.MANAGER:
            owner = Request.manager_id == principal.id
        else:
            owner = Request.assigned_to == principal.id

        return self.store.list_by_predicate(owner, Request.status.in_(visible))

    def get_request(self, request_id: int, principal: Principal) -> Request:
        """
        Fetch a single request in any status the principal is entitled to.

        Raises:
            NotFound: If the request does not exist
            Forbidden: If the principal may not view it
        """
        request = self.store.get(request_id)
        if not self.can_view(request, principal):
            logger.warning("User %s denied access to request %s", principal.id, request_id)
            raise Forbidden("You are not allowed to view this request")
        return request

    def get_history(self, request_id: int, principal: Principal) -> List[RequestHistory]:
        """History entries of a request, visible to whoever can fetch it."""
        self.get_request(request_id, principal)
        return self.ledger.entries(request_id)

    @staticmethod
    def can_view(request: Request, principal: Principal) -> bool:
        if principal.role == Role.MANAGER:
            return request.manager_id == principal.id
        return principal.id in (request.created_by, request.assigned_to)

    @staticmethod
    def available_actions(request: Request, principal: Principal) -> List[RequestAction]:
        """Actions the principal could apply to the request right now."""
        return RequestStateMachine(request, principal).get_available_actions()
