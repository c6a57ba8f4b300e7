"""Request state machine implementation.

Evaluates a requested action against the transition table: the acting
principal is authorized first, then the request's current status is checked.
The machine never touches storage; the service pairs its verdict with the
store write and ledger append.
"""

from typing import Any, Union

from .errors import (
    Forbidden,
    InvalidInput,
    InvalidTransition,
    RequestAlreadyRejected,
    Unauthorized,
)
from .principal import Principal
from .states import (
    ACTION_ACTOR_FIELDS,
    TERMINAL_STATES,
    RequestAction,
    RequestStatus,
    TransitionRule,
    get_transition_rule,
    required_role,
)


def parse_action(token: Union[str, RequestAction]) -> RequestAction:
    """Normalize a transport-level action token into ``RequestAction``.

    Tokens are matched case-insensitively ("approve", "Approve", "APPROVE").

    Raises:
        InvalidInput: If the token is not one of the known actions
    """
    if isinstance(token, RequestAction):
        return token
    if not isinstance(token, str) or not token.strip():
        raise InvalidInput("Action is required")
    try:
        return RequestAction(token.strip().upper())
    except ValueError:
        allowed = ", ".join(a.value.lower() for a in RequestAction)
        raise InvalidInput(f"Invalid action '{token}'. Must be one of: {allowed}") from None


class RequestStateMachine:
    """
    State machine for a single request, bound to the acting principal.

    Handles:
    - Role and ownership checks (always before status checks)
    - Transition lookup by (status, action, role)
    - Reporting which actions the principal may currently perform
    """

    def __init__(self, request: Any, principal: Principal):
        """
        Initialize the state machine.

        Args:
            request: Object exposing ``id``, ``status``, ``manager_id`` and
                ``assigned_to`` (an ORM row or any snapshot of one)
            principal: The acting user
        """
        self.request = request
        self.principal = principal
        self._state = RequestStatus(request.status)

    @property
    def state(self) -> RequestStatus:
        """Current state of the request."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal (no further transitions)."""
        return self._state in TERMINAL_STATES

    def authorize(self, action: RequestAction) -> None:
        """
        Check that the principal may attempt ``action`` on this request.

        Status is not consulted here.

        Raises:
            Unauthorized: If the principal's role does not own the action
            Forbidden: If the principal is not the request's designated actor
        """
        role = required_role(action)
        if self.principal.role != role:
            raise Unauthorized(
                f"Only {role.value.lower()}s can {action.value.lower()} a request"
            )

        actor_field = ACTION_ACTOR_FIELDS[action]
        if getattr(self.request, actor_field) != self.principal.id:
            if actor_field == "manager_id":
                raise Forbidden("Only the assigned manager can act on this request")
            raise Forbidden("Only the assigned employee can act on this request")

    def resolve(self, action: RequestAction) -> TransitionRule:
        """
        Authorize the principal and find the transition rule for ``action``.

        Returns:
            The matching transition rule

        Raises:
            Unauthorized / Forbidden: See ``authorize``
            RequestAlreadyRejected: If the request was rejected by its manager
            InvalidTransition: If the current status does not allow the action
        """
        self.authorize(action)

        rule = get_transition_rule(self.state, action, self.principal.role)
        if rule is not None:
            return rule

        if self._state == RequestStatus.MANAGER_REJECTED:
            raise RequestAlreadyRejected(
                "Request was rejected by the manager and cannot be processed",
                self._state.value,
                action.value,
            )
        raise InvalidTransition(
            f"Cannot {action.value.lower()} a request in status {self._state.value}",
            self._state.value,
            action.value,
        )

    def can_perform(self, action: RequestAction) -> bool:
        """Check if the principal can perform ``action`` right now."""
        try:
            self.resolve(action)
        except (Unauthorized, InvalidTransition):
            return False
        return True

    def get_available_actions(self) -> list[RequestAction]:
        """Get list of actions available to the principal from current state."""
        if self.is_terminal:
            return []
        return [action for action in RequestAction if self.can_perform(action)]
