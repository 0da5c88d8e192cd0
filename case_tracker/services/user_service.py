"""User service for account management and role lookups."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.errors import ConflictError, NotFoundError, ValidationError
from case_tracker.domain.permissions import Role, parse_role
from case_tracker.persistence.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Service for user operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = UserRepository(session)

    async def get_user(self, user_id: int) -> dict[str, Any]:
        """Get a user by ID."""
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user

    async def get_user_role(self, user_id: int) -> dict[str, Any]:
        """Get only the role of a user."""
        role = await self.repo.get_role(user_id)
        if role is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return {"user_id": user_id, "role": role}

    async def list_users(self, role: str | None = None) -> list[dict[str, Any]]:
        """List users, optionally only those with the given role."""
        if role is not None:
            parsed = parse_role(role)
            if parsed is None:
                raise ValidationError(
                    f"Role must be one of {[r.value for r in Role]}",
                    details={"role": role},
                )
            role = parsed.value
        return await self.repo.list(role=role)

    async def create_user(self, username: str, email: str, role: str) -> dict[str, Any]:
        """Create a user with a fixed role.

        Usernames and emails are unique; emails are compared case-insensitively.
        """
        email = email.strip().lower()
        if await self.repo.get_by_username(username):
            raise ConflictError(
                "Username is already taken",
                details={"username": username},
            )
        if await self.repo.get_by_email(email):
            raise ConflictError(
                "Email is already registered",
                details={"email": email},
            )

        user = await self.repo.create(username=username, email=email, role=role)
        if user is None:
            raise ConflictError(
                "Username or email is already registered",
                details={"username": username, "email": email},
            )
        logger.info("User %s created with role %s", user["id"], user["role"])
        return user
