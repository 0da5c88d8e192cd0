"""Fraud case and escalation schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from case_tracker.domain.lifecycle import CasePriority, CaseStatus


class FraudCaseCreate(BaseModel):
    """Schema for opening a fraud case."""

    txid: str = Field(..., min_length=1, max_length=255, description="Transaction ID")
    description: str = Field(..., min_length=1, max_length=5000, description="Case description")
    priority: CasePriority = Field(CasePriority.MEDIUM, description="Initial priority")


class FraudCaseUpdate(BaseModel):
    """Schema for a partial case update.

    Only fields present in the request body are applied; send
    ``"assigned_to": null`` explicitly to unassign.
    """

    txid: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1, max_length=5000)
    status: CaseStatus | None = None
    priority: CasePriority | None = None
    assigned_to: int | None = Field(None, description="User to hand the case to")

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        values = self.model_dump(include=self.model_fields_set, mode="json")
        # null is meaningful for assigned_to only
        return {k: v for k, v in values.items() if v is not None or k == "assigned_to"}


class AssignRequest(BaseModel):
    """Schema for assigning a case."""

    assigned_to: int = Field(..., description="ID of the investigator or analyst to assign to")


class EscalateRequest(BaseModel):
    """Schema for escalating a case."""

    new_priority: CasePriority = Field(..., description="Priority after escalation")
    reason: str = Field(..., min_length=1, max_length=5000, description="Reason for escalation")
    escalated_to: int | None = Field(None, description="User who takes over the case")
    new_status: CaseStatus | None = Field(
        None, description="Status after escalation (defaults to escalated)"
    )


class FraudCaseResponse(BaseModel):
    """Response schema for a fraud case."""

    id: int
    txid: str
    description: str
    status: CaseStatus
    priority: CasePriority

    # Ownership
    assigned_to: int | None = None
    created_by: int

    # Timestamps
    created_at: datetime
    updated_at: datetime


class EscalationResponse(BaseModel):
    """Response schema for an escalation ledger entry."""

    id: int
    case_id: int
    escalated_by: int
    escalated_to: int | None = None

    # Change details
    previous_status: CaseStatus
    new_status: CaseStatus
    previous_priority: CasePriority
    new_priority: CasePriority
    reason: str

    created_at: datetime


class EscalateResponse(BaseModel):
    """Response schema for an escalation: the updated case and its ledger entry."""

    case: FraudCaseResponse
    escalation: EscalationResponse


class CaseStatisticsResponse(BaseModel):
    """Aggregate counts over the cases visible to the requesting user."""

    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    unassigned: int
    escalated: int
    avg_resolution_days: float | None = None
