"""API routes for user management."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.database import get_session
from case_tracker.core.dependencies import RequireUserCreate, RequireUserRead
from case_tracker.domain.permissions import Role
from case_tracker.schemas.user import UserCreate, UserResponse, UserRoleResponse
from case_tracker.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    """Get user service instance."""
    return UserService(session)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    request: UserCreate,
    current_user: RequireUserCreate,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Create a user. Requires user:create."""
    return await user_service.create_user(
        username=request.username,
        email=request.email,
        role=request.role.value,
    )


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: RequireUserRead,
    role: Role | None = None,
    user_service: UserService = Depends(get_user_service),
) -> list[dict]:
    """List users, optionally filtered by role."""
    return await user_service.list_users(role=role.value if role else None)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user: RequireUserRead,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Get a user by ID."""
    return await user_service.get_user(user_id)


@router.get("/{user_id}/role", response_model=UserRoleResponse)
async def get_user_role(
    user_id: int,
    current_user: RequireUserRead,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Get the role of a user."""
    return await user_service.get_user_role(user_id)
