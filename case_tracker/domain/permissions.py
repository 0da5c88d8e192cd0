"""Role-based permission matrix.

Answers whether a role may perform an action on a kind of resource *in
principle*. Ownership and assignment rules are applied separately by the
visibility filter and the case workflow.
"""

from enum import Enum
from types import MappingProxyType


class Role(str, Enum):
    ADMIN = "admin"
    INVESTIGATOR = "investigator"
    ANALYST = "analyst"
    VIEWER = "viewer"


class Resource(str, Enum):
    CASE = "case"
    USER = "user"
    ESCALATION = "escalation"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ESCALATE = "escalate"
    ASSIGN = "assign"


ALL_ACTIONS = frozenset(Action)

# Admin is handled as a bypass in is_allowed(); its row is listed for completeness.
PERMISSION_MATRIX = MappingProxyType(
    {
        Role.ADMIN: MappingProxyType(
            {
                Resource.CASE: ALL_ACTIONS,
                Resource.USER: ALL_ACTIONS,
                Resource.ESCALATION: ALL_ACTIONS,
            }
        ),
        Role.INVESTIGATOR: MappingProxyType(
            {
                Resource.CASE: frozenset(
                    {Action.CREATE, Action.READ, Action.UPDATE, Action.ESCALATE, Action.ASSIGN}
                ),
                Resource.USER: frozenset({Action.READ}),
                Resource.ESCALATION: frozenset({Action.CREATE, Action.READ}),
            }
        ),
        Role.ANALYST: MappingProxyType(
            {
                Resource.CASE: frozenset({Action.READ, Action.UPDATE, Action.ESCALATE}),
                Resource.USER: frozenset({Action.READ}),
                Resource.ESCALATION: frozenset({Action.CREATE, Action.READ}),
            }
        ),
        Role.VIEWER: MappingProxyType(
            {
                Resource.CASE: frozenset({Action.READ}),
                Resource.USER: frozenset({Action.READ}),
                Resource.ESCALATION: frozenset({Action.READ}),
            }
        ),
    }
)


def parse_role(value: str | Role | None) -> Role | None:
    """Coerce a stored role value to Role, or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except (TypeError, ValueError):
        return None


def is_allowed(role: str | Role | None, resource: str | Resource, action: str | Action) -> bool:
    """Return True if ``role`` may perform ``action`` on ``resource``.

    Never raises. Unknown roles, resources or actions are denied.
    """
    parsed_role = parse_role(role)
    if parsed_role is None:
        return False

    try:
        parsed_resource = Resource(resource)
        parsed_action = Action(action)
    except (TypeError, ValueError):
        return False

    if parsed_role is Role.ADMIN:
        return True

    allowed = PERMISSION_MATRIX[parsed_role].get(parsed_resource, frozenset())
    return parsed_action in allowed


def allowed_actions(role: str | Role | None, resource: str | Resource) -> frozenset[Action]:
    """Return every action ``role`` may perform on ``resource``."""
    return frozenset(action for action in Action if is_allowed(role, resource, action))
