"""
Acting-user resolution and authorization dependencies.

The caller identifies itself with the ``X-User-ID`` header (name configurable
through ``SECURITY_USER_HEADER``). The user's role is looked up in the
database and checked against the permission matrix.
"""

import logging

from fastapi import Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.config import get_settings
from case_tracker.core.database import get_session
from case_tracker.core.errors import ForbiddenError, UnauthorizedError
from case_tracker.domain.permissions import Action, Resource, Role, is_allowed, parse_role
from case_tracker.persistence.user_repository import UserRepository

logger = logging.getLogger(__name__)


class ActingUser(BaseModel):
    """The user a request is made on behalf of."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def can(self, resource: Resource | str, action: Action | str) -> bool:
        """Check the permission matrix for this user's role."""
        return is_allowed(self.role, resource, action)


def get_acting_user_id(request: Request) -> int:
    """Read the acting user's ID from the identity header.

    Raises:
        UnauthorizedError: If the header is missing or not a positive integer
    """
    header = get_settings().security.user_header
    raw = request.headers.get(header)
    if raw is None or not raw.strip():
        logger.warning("Missing %s header", header)
        raise UnauthorizedError(f"Missing {header} header")

    try:
        user_id = int(raw.strip())
    except ValueError:
        user_id = 0
    if user_id <= 0:
        logger.warning("Invalid %s header: %r", header, raw)
        raise UnauthorizedError(f"Invalid {header} header", details={"header": header})
    return user_id


async def get_acting_user(
    user_id: int = Depends(get_acting_user_id),
    session: AsyncSession = Depends(get_session),
) -> ActingUser:
    """Resolve the acting user's role.

    Raises:
        UnauthorizedError: If no user with that ID exists or its role is unknown
    """
    role = parse_role(await UserRepository(session).get_role(user_id))
    if role is None:
        logger.warning("Unknown acting user %s", user_id)
        raise UnauthorizedError("Unknown user", details={"user_id": user_id})
    return ActingUser(user_id=user_id, role=role)


def require_permission(resource: Resource, action: Action):
    """Dependency factory that enforces a permission-matrix entry.

    Usage:
        @router.post("/users")
        async def create_user(
            user: ActingUser = Depends(require_permission(Resource.USER, Action.CREATE))
        ):
            ...
    """

    def permission_checker(user: ActingUser = Depends(get_acting_user)) -> ActingUser:
        if user.is_admin:
            logger.debug("Admin - permission check bypassed")
            return user

        if not user.can(resource, action):
            logger.warning(
                "Access denied - user %s (%s) lacks permission: %s:%s",
                user.user_id,
                user.role.value,
                resource.value,
                action.value,
            )
            # Sanitize error details in production to prevent information leakage
            if get_settings().security.sanitize_errors:
                raise ForbiddenError("Insufficient permissions")
            raise ForbiddenError(
                "Insufficient permissions",
                details={
                    "required_permission": f"{resource.value}:{action.value}",
                    "role": user.role.value,
                },
            )

        logger.debug("Permission check passed: %s:%s", resource.value, action.value)
        return user

    return permission_checker
