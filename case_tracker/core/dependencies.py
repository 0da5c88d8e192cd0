"""
FastAPI dependency injection utilities.

Provides reusable dependencies for the acting user and permission checks.
"""

from typing import Annotated

from fastapi import Depends

from case_tracker.core.auth import (
    ActingUser,
    get_acting_user,
    get_acting_user_id,
    require_permission,
)
from case_tracker.domain.permissions import Action, Resource

# =============================================================================
# Acting User
# =============================================================================

# ID from the identity header only; the case service resolves the role itself
ActingUserId = Annotated[int, Depends(get_acting_user_id)]

CurrentUser = Annotated[ActingUser, Depends(get_acting_user)]


# =============================================================================
# Permission-based Dependencies
# =============================================================================


def require_user_read(
    user: ActingUser = Depends(require_permission(Resource.USER, Action.READ)),
) -> ActingUser:
    """Require user:read permission to look up users."""
    return user


def require_user_create(
    user: ActingUser = Depends(require_permission(Resource.USER, Action.CREATE)),
) -> ActingUser:
    """Require user:create permission to add users."""
    return user


RequireUserRead = Annotated[ActingUser, Depends(require_user_read)]
RequireUserCreate = Annotated[ActingUser, Depends(require_user_create)]
