"""Case statistics over the cases a user can see."""

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.domain.lifecycle import CasePriority, CaseStatus
from case_tracker.services.case_service import CaseService

SECONDS_PER_DAY = 86400

# Statuses whose updated_at marks when the case was finished
FINISHED_STATUSES = frozenset({CaseStatus.RESOLVED, CaseStatus.CLOSED})


def summarize_cases(cases: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Aggregate counts by status and priority plus average resolution time.

    Resolution time is ``updated_at - created_at`` of resolved and closed
    cases, in days.
    """
    cases = list(cases)
    by_status = Counter(case["status"] for case in cases)
    by_priority = Counter(case["priority"] for case in cases)

    durations = [
        (case["updated_at"] - case["created_at"]).total_seconds() / SECONDS_PER_DAY
        for case in cases
        if case["status"] in FINISHED_STATUSES
        and case.get("created_at") is not None
        and case.get("updated_at") is not None
    ]

    return {
        "total": len(cases),
        "by_status": {status.value: by_status.get(status.value, 0) for status in CaseStatus},
        "by_priority": {
            priority.value: by_priority.get(priority.value, 0) for priority in CasePriority
        },
        "unassigned": sum(1 for case in cases if case.get("assigned_to") is None),
        "escalated": by_status.get(CaseStatus.ESCALATED.value, 0),
        "avg_resolution_days": round(sum(durations) / len(durations), 2) if durations else None,
    }


class StatisticsService:
    """Service for dashboard statistics."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.cases = CaseService(session)

    async def get_case_statistics(self, acting_user_id: int) -> dict[str, Any]:
        """Statistics over every case visible to the acting user."""
        visible = await self.cases.list_cases(acting_user_id)
        return summarize_cases(visible)
