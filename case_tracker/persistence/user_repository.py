"""User repository using SQLAlchemy 2.0 async.

Table: fraud_cases.users
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for fraud_cases.users data access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> dict[str, Any] | None:
        """Get user by ID."""
        result = await self.session.execute(
            text("""
                SELECT id, username, email, role, created_at, updated_at
                FROM fraud_cases.users
                WHERE id = :user_id
            """),
            {"user_id": user_id},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def get_role(self, user_id: int) -> str | None:
        """Get only the role of a user, or None if the user does not exist."""
        result = await self.session.execute(
            text("SELECT role FROM fraud_cases.users WHERE id = :user_id"),
            {"user_id": user_id},
        )
        row = result.fetchone()
        if row is None:
            return None
        return row[0]

    async def get_by_username(self, username: str) -> dict[str, Any] | None:
        """Get user by username."""
        result = await self.session.execute(
            text("""
                SELECT id, username, email, role, created_at, updated_at
                FROM fraud_cases.users
                WHERE username = :username
            """),
            {"username": username},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Get user by email."""
        result = await self.session.execute(
            text("""
                SELECT id, username, email, role, created_at, updated_at
                FROM fraud_cases.users
                WHERE email = :email
            """),
            {"email": email},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def list(self, role: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        """List users, optionally restricted to one role."""
        conditions = []
        params: dict[str, Any] = {"limit": limit}

        if role:
            conditions.append("role = :role")
            params["role"] = role

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        result = await self.session.execute(
            text(f"""
                SELECT id, username, email, role, created_at, updated_at
                FROM fraud_cases.users
                WHERE {where_clause}
                ORDER BY id ASC
                LIMIT :limit
            """),
            params,
        )
        return [self._row_to_dict(row) for row in result.fetchall()]

    async def create(self, username: str, email: str, role: str) -> dict[str, Any] | None:
        """Create a new user.

        Returns None when the username or email is already taken.
        """
        result = await self.session.execute(
            text("""
                INSERT INTO fraud_cases.users (username, email, role, created_at, updated_at)
                VALUES (:username, :email, :role, NOW(), NOW())
                ON CONFLICT DO NOTHING
                RETURNING id, username, email, role, created_at, updated_at
            """),
            {"username": username, "email": email, "role": role},
        )
        row = result.fetchone()
        if row is None:
            return None
        logger.info("User created", extra={"user_id": row[0], "role": role})
        return self._row_to_dict(row)

    def _row_to_dict(self, row) -> dict[str, Any]:
        """Convert a database row to a dictionary."""
        return {
            "id": row[0],
            "username": row[1],
            "email": row[2],
            "role": row[3],
            "created_at": row[4],
            "updated_at": row[5],
        }
