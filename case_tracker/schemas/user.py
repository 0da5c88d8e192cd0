"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from case_tracker.domain.permissions import Role


class UserCreate(BaseModel):
    """Schema for creating a user."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: Role = Field(Role.VIEWER, description="Fixed role of the user")


class UserResponse(BaseModel):
    """Response schema for a user."""

    id: int
    username: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime


class UserRoleResponse(BaseModel):
    """Response schema for a role lookup."""

    user_id: int
    role: Role
