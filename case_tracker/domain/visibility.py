"""Ownership-based case visibility.

The permission matrix says whether a role may read cases at all; this module
narrows that to the specific cases a user may see or operate on.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from case_tracker.domain.permissions import Role, parse_role

# Roles that see every case, regardless of who created or holds it
UNRESTRICTED_ROLES = frozenset({Role.ADMIN, Role.INVESTIGATOR})

# Roles limited to cases they created or are assigned to
OWNERSHIP_SCOPED_ROLES = frozenset({Role.ANALYST, Role.VIEWER})


def is_visible(role: str | Role | None, user_id: int, case: Mapping[str, Any]) -> bool:
    """Return True if the user may see ``case``.

    ``case`` is a repository row with ``created_by`` and ``assigned_to`` keys.
    """
    parsed = parse_role(role)
    if parsed in UNRESTRICTED_ROLES:
        return True
    if parsed in OWNERSHIP_SCOPED_ROLES:
        return case.get("created_by") == user_id or case.get("assigned_to") == user_id
    return False


def filter_visible(
    role: str | Role | None,
    user_id: int,
    cases: Iterable[Mapping[str, Any]],
) -> list[Mapping[str, Any]]:
    """Return the cases visible to the user, keeping their original order."""
    return [case for case in cases if is_visible(role, user_id, case)]
