"""API routes for fraud case management."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.database import get_session
from case_tracker.core.dependencies import ActingUserId
from case_tracker.domain.lifecycle import CasePriority, CaseStatus
from case_tracker.schemas.case import (
    AssignRequest,
    CaseStatisticsResponse,
    EscalateRequest,
    EscalateResponse,
    EscalationResponse,
    FraudCaseCreate,
    FraudCaseResponse,
    FraudCaseUpdate,
)
from case_tracker.services.case_service import CaseService
from case_tracker.services.statistics_service import StatisticsService

router = APIRouter(prefix="/cases", tags=["cases"])


def get_case_service(session: AsyncSession = Depends(get_session)) -> CaseService:
    """Get case service instance."""
    return CaseService(session)


def get_statistics_service(session: AsyncSession = Depends(get_session)) -> StatisticsService:
    """Get statistics service instance."""
    return StatisticsService(session)


@router.get("", response_model=list[FraudCaseResponse])
async def list_cases(
    acting_user_id: ActingUserId,
    status: CaseStatus | None = None,
    priority: CasePriority | None = None,
    assigned_to: int | None = None,
    created_by: int | None = None,
    txid: str | None = None,
    case_service: CaseService = Depends(get_case_service),
) -> list[dict]:
    """List the cases visible to the caller.

    Analysts and viewers only see cases they created or are assigned to.
    """
    return await case_service.list_cases(
        acting_user_id,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
        created_by=created_by,
        txid=txid,
    )


@router.post("", response_model=FraudCaseResponse, status_code=201)
async def create_case(
    request: FraudCaseCreate,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Open a fraud case for a transaction. The caller becomes its creator."""
    return await case_service.create_case(
        txid=request.txid,
        description=request.description,
        priority=request.priority.value,
        created_by=acting_user_id,
    )


@router.get("/statistics", response_model=CaseStatisticsResponse)
async def get_case_statistics(
    acting_user_id: ActingUserId,
    statistics_service: StatisticsService = Depends(get_statistics_service),
) -> dict:
    """Get counts over the cases visible to the caller."""
    return await statistics_service.get_case_statistics(acting_user_id)


@router.get("/txid/{txid}", response_model=FraudCaseResponse)
async def get_case_by_txid(
    txid: str,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Get a case by its transaction ID."""
    return await case_service.get_case_by_txid(txid, acting_user_id)


@router.get("/{case_id}", response_model=FraudCaseResponse)
async def get_case(
    case_id: int,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Get a case by ID."""
    return await case_service.get_case(case_id, acting_user_id)


@router.patch("/{case_id}", response_model=FraudCaseResponse)
async def update_case(
    case_id: int,
    request: FraudCaseUpdate,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Update a case.

    Only the fields present in the body change. Admins may update any case,
    investigators and analysts only cases assigned to them.
    """
    return await case_service.update_case(
        case_id=case_id,
        fields=request.changes(),
        acting_user_id=acting_user_id,
    )


@router.post("/{case_id}/assign", response_model=FraudCaseResponse)
async def assign_case(
    case_id: int,
    request: AssignRequest,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Assign a case to an investigator or analyst; the case moves to in_progress."""
    return await case_service.assign_case(
        case_id=case_id,
        assigned_to=request.assigned_to,
        assigned_by=acting_user_id,
    )


@router.post("/{case_id}/escalate", response_model=EscalateResponse)
async def escalate_case(
    case_id: int,
    request: EscalateRequest,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Escalate a case and record the escalation."""
    case, escalation = await case_service.escalate_case(
        case_id=case_id,
        escalated_by=acting_user_id,
        new_priority=request.new_priority.value,
        reason=request.reason,
        escalated_to=request.escalated_to,
        new_status=request.new_status.value if request.new_status else None,
    )
    return {"case": case, "escalation": escalation}


@router.post("/{case_id}/close", response_model=FraudCaseResponse)
async def close_case(
    case_id: int,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> dict:
    """Close a resolved case."""
    return await case_service.close_case(case_id, acting_user_id)


@router.get("/{case_id}/escalations", response_model=list[EscalationResponse])
async def get_case_escalations(
    case_id: int,
    acting_user_id: ActingUserId,
    case_service: CaseService = Depends(get_case_service),
) -> list[dict]:
    """Get the escalation history of a case, oldest first."""
    return await case_service.get_case_escalations(case_id, acting_user_id)
