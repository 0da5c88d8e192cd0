"""Case repository using SQLAlchemy 2.0 async.

Table: fraud_cases.cases

Every write is a single UPDATE statement so concurrent writers on the same
row serialise in the database; callers that read-then-write lock the row
first with ``get_by_id(..., for_update=True)``.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

CASE_COLUMNS = """
    id, txid, description, status, priority,
    assigned_to, created_by, created_at, updated_at
"""

# Columns a partial update may touch; updated_at is always refreshed
UPDATABLE_FIELDS = ("txid", "description", "status", "priority", "assigned_to")


class CaseRepository:
    """Repository for fraud_cases.cases data access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, case_id: int, for_update: bool = False) -> dict[str, Any] | None:
        """Get case by ID, optionally locking the row for the current transaction."""
        lock_clause = "FOR UPDATE" if for_update else ""
        result = await self.session.execute(
            text(f"""
                SELECT {CASE_COLUMNS}
                FROM fraud_cases.cases
                WHERE id = :case_id
                {lock_clause}
            """),
            {"case_id": case_id},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def get_by_txid(self, txid: str) -> dict[str, Any] | None:
        """Get case by transaction ID."""
        result = await self.session.execute(
            text(f"""
                SELECT {CASE_COLUMNS}
                FROM fraud_cases.cases
                WHERE txid = :txid
            """),
            {"txid": txid},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def list(
        self,
        status: str | None = None,
        priority: str | None = None,
        assigned_to: int | None = None,
        created_by: int | None = None,
        txid: str | None = None,
    ) -> list[dict[str, Any]]:
        """List cases matching the given filters, newest first."""
        conditions = []
        params: dict[str, Any] = {}

        if status:
            conditions.append("status = :status")
            params["status"] = status
        if priority:
            conditions.append("priority = :priority")
            params["priority"] = priority
        if assigned_to is not None:
            conditions.append("assigned_to = :assigned_to")
            params["assigned_to"] = assigned_to
        if created_by is not None:
            conditions.append("created_by = :created_by")
            params["created_by"] = created_by
        if txid:
            conditions.append("txid = :txid")
            params["txid"] = txid

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        result = await self.session.execute(
            text(f"""
                SELECT {CASE_COLUMNS}
                FROM fraud_cases.cases
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
            """),
            params,
        )
        return [self._row_to_dict(row) for row in result.fetchall()]

    async def create(
        self,
        txid: str,
        description: str,
        priority: str,
        created_by: int,
    ) -> dict[str, Any] | None:
        """Create a new open, unassigned case.

        Returns None when another case already holds ``txid``.
        """
        result = await self.session.execute(
            text(f"""
                INSERT INTO fraud_cases.cases (
                    txid, description, status, priority,
                    assigned_to, created_by, created_at, updated_at
                ) VALUES (
                    :txid, :description, 'open', :priority,
                    NULL, :created_by, NOW(), NOW()
                )
                ON CONFLICT (txid) DO NOTHING
                RETURNING {CASE_COLUMNS}
            """),
            {
                "txid": txid,
                "description": description,
                "priority": priority,
                "created_by": created_by,
            },
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def update(self, case_id: int, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial update.

        Only keys present in ``fields`` are written; ``assigned_to`` may be
        set to None to unassign. Unknown keys are rejected.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update case columns: {sorted(unknown)}")

        update_fields = ["updated_at = NOW()"]
        params: dict[str, Any] = {"case_id": case_id}

        for column in UPDATABLE_FIELDS:
            if column in fields:
                update_fields.append(f"{column} = :{column}")
                params[column] = fields[column]

        result = await self.session.execute(
            text(f"""
                UPDATE fraud_cases.cases
                SET {", ".join(update_fields)}
                WHERE id = :case_id
                RETURNING {CASE_COLUMNS}
            """),
            params,
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    def _row_to_dict(self, row) -> dict[str, Any]:
        """Convert a database row to a dictionary."""
        return {
            "id": row[0],
            "txid": row[1],
            "description": row[2],
            "status": row[3],
            "priority": row[4],
            "assigned_to": row[5],
            "created_by": row[6],
            "created_at": row[7],
            "updated_at": row[8],
        }
