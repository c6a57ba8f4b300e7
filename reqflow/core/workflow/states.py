"""Request workflow states, actions and transitions.

State Machine Diagram:

    ┌──────────────────────────┐
    │ PENDING_MANAGER_APPROVAL │ ← Initial state (request created)
    └────────────┬─────────────┘
                 │  (manager)
         ┌───────┴────────┐
         │                │
    ┌────▼──────────┐ ┌───▼──────────────┐
    │MANAGER_APPROVED│ │ MANAGER_REJECTED │ (terminal)
    └────┬──────────┘ └──────────────────┘
         │  (employee)
    ┌────▼───────────────┐
    │ ACTION_IN_PROGRESS │
    └────┬───────────────┘
         │  (employee)
    ┌────▼───┐
    │ CLOSED │ (terminal)
    └────────┘
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class Role(str, Enum):
    """Roles a principal can hold."""

    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class RequestStatus(str, Enum):
    """States in the request lifecycle."""

    PENDING_MANAGER_APPROVAL = "PENDING_MANAGER_APPROVAL"
    MANAGER_APPROVED = "MANAGER_APPROVED"
    MANAGER_REJECTED = "MANAGER_REJECTED"
    ACTION_IN_PROGRESS = "ACTION_IN_PROGRESS"
    CLOSED = "CLOSED"


class RequestAction(str, Enum):
    """Actions that trigger state transitions."""

    APPROVE = "APPROVE"    # PENDING_MANAGER_APPROVAL → MANAGER_APPROVED
    REJECT = "REJECT"      # PENDING_MANAGER_APPROVAL → MANAGER_REJECTED
    ACTION = "ACTION"      # MANAGER_APPROVED → ACTION_IN_PROGRESS
    CLOSE = "CLOSE"        # ACTION_IN_PROGRESS → CLOSED


# Ledger action recorded for the initial insert
REQUEST_CREATED = "REQUEST_CREATED"


class TransitionRule(NamedTuple):
    """Defines a valid state transition.

    ``actor_field`` names the request attribute holding the only user id
    allowed to perform the transition.
    """
    from_state: RequestStatus
    action: RequestAction
    role: Role
    to_state: RequestStatus
    actor_field: str


TRANSITION_RULES: list[TransitionRule] = [
    # Manager review
    TransitionRule(RequestStatus.PENDING_MANAGER_APPROVAL, RequestAction.APPROVE, Role.MANAGER,
                   RequestStatus.MANAGER_APPROVED, "manager_id"),
    TransitionRule(RequestStatus.PENDING_MANAGER_APPROVAL, RequestAction.REJECT, Role.MANAGER,
                   RequestStatus.MANAGER_REJECTED, "manager_id"),

    # Employee follow-through
    TransitionRule(RequestStatus.MANAGER_APPROVED, RequestAction.ACTION, Role.EMPLOYEE,
                   RequestStatus.ACTION_IN_PROGRESS, "assigned_to"),
    TransitionRule(RequestStatus.ACTION_IN_PROGRESS, RequestAction.CLOSE, Role.EMPLOYEE,
                   RequestStatus.CLOSED, "assigned_to"),
]

# Build lookup tables for efficient access
TRANSITIONS: Dict[tuple[RequestStatus, RequestAction, Role], TransitionRule] = {}
ACTION_ROLES: Dict[RequestAction, Role] = {}
ACTION_ACTOR_FIELDS: Dict[RequestAction, str] = {}

for rule in TRANSITION_RULES:
    key = (rule.from_state, rule.action, rule.role)
    if key in TRANSITIONS:
        raise RuntimeError(f"Duplicate transition rule for {key}")
    TRANSITIONS[key] = rule

    # Every action is owned by exactly one role and one designated actor
    if ACTION_ROLES.setdefault(rule.action, rule.role) != rule.role:
        raise RuntimeError(f"Action {rule.action.value} is bound to more than one role")
    ACTION_ACTOR_FIELDS.setdefault(rule.action, rule.actor_field)

del rule


INITIAL_STATE = RequestStatus.PENDING_MANAGER_APPROVAL

# Terminal states (no outgoing transitions)
TERMINAL_STATES: Set[RequestStatus] = {
    RequestStatus.MANAGER_REJECTED,
    RequestStatus.CLOSED,
}

# Statuses a manager sees in their listing
MANAGER_VISIBLE_STATES: Set[RequestStatus] = {
    RequestStatus.PENDING_MANAGER_APPROVAL,
    RequestStatus.MANAGER_APPROVED,
    RequestStatus.MANAGER_REJECTED,
}

# Statuses an employee sees in their listing
EMPLOYEE_VISIBLE_STATES: Set[RequestStatus] = {
    RequestStatus.MANAGER_APPROVED,
    RequestStatus.ACTION_IN_PROGRESS,
}

LISTING_VISIBILITY: Dict[Role, Set[RequestStatus]] = {
    Role.MANAGER: MANAGER_VISIBLE_STATES,
    Role.EMPLOYEE: EMPLOYEE_VISIBLE_STATES,
}


def get_transition_rule(
    from_state: RequestStatus, action: RequestAction, role: Role
) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action/role combination."""
    return TRANSITIONS.get((from_state, action, role))


def required_role(action: RequestAction) -> Role:
    """Role that owns an action."""
    return ACTION_ROLES[action]
