"""Fraud case lifecycle rules.

Status flow::

    open -> in_progress -> {escalated, resolved} -> closed

Updates may set any status on a case that is not closed, but ``closed`` is
only reached from ``resolved``. Priority can change at any status except
``closed``; ``closed`` is terminal.

The functions here are pure: they decide and raise, the case service
performs the reads and writes.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from case_tracker.core.errors import ForbiddenError, InvalidStateError, ValidationError
from case_tracker.domain.permissions import Role, parse_role


class CaseStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    CLOSED = "closed"


class CasePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Roles that can hold a case
ASSIGNEE_ROLES = frozenset({Role.INVESTIGATOR, Role.ANALYST})

# Roles that can hand a case to someone
ASSIGNER_ROLES = frozenset({Role.ADMIN, Role.INVESTIGATOR, Role.ANALYST})

# Roles that may update or close a case while it is assigned to them
CASE_HANDLER_ROLES = frozenset({Role.INVESTIGATOR, Role.ANALYST})

# Roles that may receive an escalated case
ESCALATION_TARGET_ROLES = frozenset({Role.ADMIN, Role.INVESTIGATOR, Role.ANALYST})

# Roles that may read escalation history (stricter than the matrix's escalation:read)
ESCALATION_HISTORY_ROLES = frozenset({Role.ADMIN, Role.INVESTIGATOR, Role.ANALYST})


def coerce_status(value: str | CaseStatus) -> CaseStatus:
    try:
        return CaseStatus(value)
    except ValueError:
        raise ValidationError(
            f"Status must be one of {[s.value for s in CaseStatus]}",
            details={"status": value},
        ) from None


def coerce_priority(value: str | CasePriority) -> CasePriority:
    try:
        return CasePriority(value)
    except ValueError:
        raise ValidationError(
            f"Priority must be one of {[p.value for p in CasePriority]}",
            details={"priority": value},
        ) from None


def ensure_not_closed(case: Mapping[str, Any], operation: str) -> None:
    """Raise InvalidStateError if the case is closed."""
    if case["status"] == CaseStatus.CLOSED:
        raise InvalidStateError(
            f"Cannot {operation} a closed case",
            details={"case_id": case["id"], "current_status": case["status"]},
        )


def validate_status_change(case: Mapping[str, Any], new_status: str) -> None:
    """Raise InvalidStateError if an update may not set ``new_status``.

    Any status may be set, except that ``closed`` is only reachable from
    ``resolved``, the same precondition close_case applies. Closed cases are
    rejected earlier by ensure_not_closed.
    """
    target = coerce_status(new_status)
    if target == CaseStatus.CLOSED and case["status"] != CaseStatus.RESOLVED:
        raise InvalidStateError(
            "Case must be in resolved status to be closed",
            details={
                "case_id": case["id"],
                "current_status": case["status"],
                "requested_status": target.value,
            },
        )


def ensure_closable(case: Mapping[str, Any]) -> None:
    """Raise InvalidStateError unless the case is resolved."""
    if case["status"] != CaseStatus.RESOLVED:
        raise InvalidStateError(
            "Case must be in resolved status to be closed",
            details={"case_id": case["id"], "current_status": case["status"]},
        )


def can_modify_case(role: str | Role | None, user_id: int, case: Mapping[str, Any]) -> bool:
    """Admins may modify any case; investigators and analysts only their assigned ones."""
    parsed = parse_role(role)
    if parsed is Role.ADMIN:
        return True
    return parsed in CASE_HANDLER_ROLES and case.get("assigned_to") == user_id


def ensure_can_modify(user: Mapping[str, Any], case: Mapping[str, Any], operation: str) -> None:
    """Raise ForbiddenError unless ``user`` may modify ``case``."""
    if not can_modify_case(user["role"], user["id"], case):
        raise ForbiddenError(
            f"Insufficient permissions to {operation} this fraud case",
            details={"case_id": case["id"], "user_id": user["id"], "role": user["role"]},
        )


def ensure_assignee_eligible(assignee: Mapping[str, Any] | None, assignee_id: int) -> None:
    """Raise ValidationError unless the assignee exists and can hold cases."""
    if assignee is None:
        raise ValidationError(
            "Assignee does not exist",
            details={"assigned_to": assignee_id},
        )
    if parse_role(assignee["role"]) not in ASSIGNEE_ROLES:
        raise ValidationError(
            "Cases can only be assigned to investigators or analysts",
            details={"assigned_to": assignee_id, "role": assignee["role"]},
        )


def ensure_assigner_eligible(assigner: Mapping[str, Any] | None, assigner_id: int) -> None:
    """Raise ForbiddenError unless the assigner exists and may assign cases."""
    if assigner is None or parse_role(assigner["role"]) not in ASSIGNER_ROLES:
        raise ForbiddenError(
            "Insufficient permissions to assign cases",
            details={
                "assigned_by": assigner_id,
                "role": assigner["role"] if assigner else None,
            },
        )


def ensure_escalation_target_eligible(target: Mapping[str, Any] | None, target_id: int) -> None:
    """Raise ValidationError unless the escalation target exists and can act on cases."""
    if target is None:
        raise ValidationError(
            "Escalation target does not exist",
            details={"escalated_to": target_id},
        )
    if parse_role(target["role"]) not in ESCALATION_TARGET_ROLES:
        raise ValidationError(
            "Cases cannot be escalated to viewers",
            details={"escalated_to": target_id, "role": target["role"]},
        )


def ensure_can_read_escalations(user: Mapping[str, Any]) -> None:
    """Raise ForbiddenError unless the user's role may read escalation history."""
    if parse_role(user["role"]) not in ESCALATION_HISTORY_ROLES:
        raise ForbiddenError(
            "Insufficient permissions to view escalation history",
            details={"user_id": user["id"], "role": user["role"]},
        )


def resolve_escalation_status(new_status: str | None) -> CaseStatus:
    """Status a case ends up in after escalation.

    Without an explicit status the case always becomes ``escalated``, whatever
    its status was before.
    """
    if new_status is None:
        return CaseStatus.ESCALATED
    status = coerce_status(new_status)
    if status == CaseStatus.CLOSED:
        raise ValidationError(
            "Escalation cannot close a case",
            details={"new_status": status.value},
        )
    return status


def validate_reason(reason: str | None, min_length: int = 1) -> str:
    """Return the stripped reason, raising ValidationError if it is too short."""
    cleaned = (reason or "").strip()
    if len(cleaned) < max(min_length, 1):
        raise ValidationError(
            "Escalation reason is required",
            details={"reason": reason, "min_length": max(min_length, 1)},
        )
    return cleaned
