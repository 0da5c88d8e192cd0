"""API routes for permission checks."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.database import get_session
from case_tracker.schemas.permission import PermissionCheck, PermissionCheckResponse
from case_tracker.services.permission_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_service(session: AsyncSession = Depends(get_session)) -> PermissionService:
    """Get permission service instance."""
    return PermissionService(session)


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    request: PermissionCheck,
    permission_service: PermissionService = Depends(get_permission_service),
) -> dict:
    """Check whether a user's role allows an action on a resource.

    Never fails for unknown users, resources or actions; they are denied.
    """
    allowed = await permission_service.check_permission(
        request.user_id, request.resource, request.action
    )
    return {
        "user_id": request.user_id,
        "resource": request.resource,
        "action": request.action,
        "allowed": allowed,
    }
