"""Schemas package for request/response models."""

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
from case_tracker.schemas.permission import PermissionCheck, PermissionCheckResponse
from case_tracker.schemas.user import UserCreate, UserResponse, UserRoleResponse

__all__ = [
    # Case
    "AssignRequest",
    "CaseStatisticsResponse",
    "EscalateRequest",
    "EscalateResponse",
    "EscalationResponse",
    "FraudCaseCreate",
    "FraudCaseResponse",
    "FraudCaseUpdate",
    # Permission
    "PermissionCheck",
    "PermissionCheckResponse",
    # User
    "UserCreate",
    "UserResponse",
    "UserRoleResponse",
]
