"""Escalation ledger repository using SQLAlchemy 2.0 async.

Table: fraud_cases.case_escalations

Append-only: records are inserted once and never updated or deleted.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class EscalationRepository:
    """Repository for fraud_cases.case_escalations data access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        case_id: int,
        escalated_by: int,
        previous_status: str,
        new_status: str,
        previous_priority: str,
        new_priority: str,
        reason: str,
        escalated_to: int | None = None,
    ) -> dict[str, Any]:
        """Append an escalation record."""
        result = await self.session.execute(
            text("""
                INSERT INTO fraud_cases.case_escalations (
                    case_id, escalated_by, escalated_to,
                    previous_status, new_status,
                    previous_priority, new_priority,
                    reason, created_at
                ) VALUES (
                    :case_id, :escalated_by, :escalated_to,
                    :previous_status, :new_status,
                    :previous_priority, :new_priority,
                    :reason, clock_timestamp()
                )
                RETURNING id, case_id, escalated_by, escalated_to,
                          previous_status, new_status,
                          previous_priority, new_priority,
                          reason, created_at
            """),
            {
                "case_id": case_id,
                "escalated_by": escalated_by,
                "escalated_to": escalated_to,
                "previous_status": previous_status,
                "new_status": new_status,
                "previous_priority": previous_priority,
                "new_priority": new_priority,
                "reason": reason,
            },
        )
        return self._row_to_dict(result.fetchone())

    async def list_by_case(self, case_id: int) -> list[dict[str, Any]]:
        """List escalation records for a case in insertion order."""
        result = await self.session.execute(
            text("""
                SELECT id, case_id, escalated_by, escalated_to,
                       previous_status, new_status,
                       previous_priority, new_priority,
                       reason, created_at
                FROM fraud_cases.case_escalations
                WHERE case_id = :case_id
                ORDER BY id ASC
            """),
            {"case_id": case_id},
        )
        return [self._row_to_dict(row) for row in result.fetchall()]

    def _row_to_dict(self, row) -> dict[str, Any]:
        """Convert a database row to a dictionary."""
        return {
            "id": row[0],
            "case_id": row[1],
            "escalated_by": row[2],
            "escalated_to": row[3],
            "previous_status": row[4],
            "new_status": row[5],
            "previous_priority": row[6],
            "new_priority": row[7],
            "reason": row[8],
            "created_at": row[9],
        }
