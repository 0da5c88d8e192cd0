"""Permission check service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.domain.permissions import is_allowed
from case_tracker.persistence.user_repository import UserRepository

logger = logging.getLogger(__name__)


class PermissionService:
    """Answers whether a stored user's role allows an action."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)

    async def check_permission(self, user_id: int, resource: str, action: str) -> bool:
        """Return True if the user's role allows ``action`` on ``resource``.

        Unknown users, resources and actions are all denied.
        """
        role = await self.users.get_role(user_id)
        if role is None:
            logger.debug("Permission check for unknown user %s", user_id)
            return False
        return is_allowed(role, resource, action)
