"""Permission check schemas."""

from pydantic import BaseModel, Field


class PermissionCheck(BaseModel):
    """Ask whether a user's role allows an action on a resource.

    Resource and action are free strings; unknown values are denied rather
    than rejected.
    """

    user_id: int
    resource: str = Field(..., max_length=64)
    action: str = Field(..., max_length=64)


class PermissionCheckResponse(BaseModel):
    user_id: int
    resource: str
    action: str
    allowed: bool
