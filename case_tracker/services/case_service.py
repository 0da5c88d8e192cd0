"""Case service: the fraud case lifecycle.

Every mutating operation resolves the acting user through the user
repository, applies the permission matrix and lifecycle rules, and then
writes through the case repository. Escalation writes the case and its
ledger entry inside one savepoint.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker.core.config import WorkflowConfig, get_settings
from case_tracker.core.database import atomic, unique_or_conflict
from case_tracker.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from case_tracker.core.logging import LoggerMixin
from case_tracker.domain import lifecycle
from case_tracker.domain.lifecycle import CaseStatus
from case_tracker.domain.permissions import Action, Resource, is_allowed
from case_tracker.domain.visibility import filter_visible, is_visible
from case_tracker.persistence.case_repository import CaseRepository
from case_tracker.persistence.escalation_repository import EscalationRepository
from case_tracker.persistence.user_repository import UserRepository


class CaseService(LoggerMixin):
    """Service for fraud case operations."""

    def __init__(self, session: AsyncSession, workflow: WorkflowConfig | None = None):
        self.session = session
        self.repo = CaseRepository(session)
        self.users = UserRepository(session)
        self.escalations = EscalationRepository(session)
        self.workflow = workflow or get_settings().workflow

    async def _require_user(self, user_id: int) -> dict[str, Any]:
        user = await self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user

    async def _require_case(self, case_id: int, for_update: bool = False) -> dict[str, Any]:
        case = await self.repo.get_by_id(case_id, for_update=for_update)
        if not case:
            raise NotFoundError("Fraud case not found", details={"case_id": case_id})
        return case

    def _require_visible(self, user: dict[str, Any], case: dict[str, Any]) -> None:
        # Hidden cases are reported as missing so their existence does not leak
        if not is_visible(user["role"], user["id"], case):
            self.logger.warning(
                "case_hidden_from_user",
                case_id=case["id"],
                user_id=user["id"],
                role=user["role"],
            )
            raise NotFoundError("Fraud case not found", details={"case_id": case["id"]})

    def _require_permission(
        self, user: dict[str, Any], resource: Resource, action: Action
    ) -> None:
        if not is_allowed(user["role"], resource, action):
            self.logger.warning(
                "permission_denied",
                user_id=user["id"],
                role=user["role"],
                resource=resource.value,
                action=action.value,
            )
            raise ForbiddenError(
                f"Insufficient permissions to {action.value} {resource.value}",
                details={
                    "user_id": user["id"],
                    "role": user["role"],
                    "resource": resource.value,
                    "action": action.value,
                },
            )

    async def _ensure_txid_available(self, txid: str) -> None:
        existing = await self.repo.get_by_txid(txid)
        if existing:
            raise ConflictError(
                "A fraud case already exists for this transaction ID",
                details={"txid": txid, "existing_case_id": existing["id"]},
            )

    def _validate_description(self, description: str | None) -> str:
        cleaned = (description or "").strip()
        if len(cleaned) < self.workflow.min_description_length:
            raise ValidationError(
                "Case description is too short",
                details={
                    "description": description,
                    "min_length": self.workflow.min_description_length,
                },
            )
        return cleaned

    async def get_case(self, case_id: int, acting_user_id: int) -> dict[str, Any]:
        """Get a case by ID if the acting user may see it."""
        user = await self._require_user(acting_user_id)
        self._require_permission(user, Resource.CASE, Action.READ)
        case = await self._require_case(case_id)
        self._require_visible(user, case)
        return case

    async def get_case_by_txid(self, txid: str, acting_user_id: int) -> dict[str, Any]:
        """Get a case by its transaction ID if the acting user may see it."""
        user = await self._require_user(acting_user_id)
        self._require_permission(user, Resource.CASE, Action.READ)
        case = await self.repo.get_by_txid(txid)
        if not case:
            raise NotFoundError("Fraud case not found", details={"txid": txid})
        self._require_visible(user, case)
        return case

    async def list_cases(
        self,
        acting_user_id: int,
        status: str | None = None,
        priority: str | None = None,
        assigned_to: int | None = None,
        created_by: int | None = None,
        txid: str | None = None,
    ) -> list[dict[str, Any]]:
        """List the cases visible to the acting user, newest first."""
        user = await self._require_user(acting_user_id)
        self._require_permission(user, Resource.CASE, Action.READ)
        if status is not None:
            status = lifecycle.coerce_status(status).value
        if priority is not None:
            priority = lifecycle.coerce_priority(priority).value

        cases = await self.repo.list(
            status=status,
            priority=priority,
            assigned_to=assigned_to,
            created_by=created_by,
            txid=txid,
        )
        return filter_visible(user["role"], user["id"], cases)

    async def get_case_escalations(
        self, case_id: int, acting_user_id: int
    ) -> list[dict[str, Any]]:
        """Get a case's escalation history in the order it was recorded.

        Viewers are always denied; admins, investigators and analysts may read
        the history of any case.
        """
        await self._require_case(case_id)
        user = await self._require_user(acting_user_id)
        lifecycle.ensure_can_read_escalations(user)
        return await self.escalations.list_by_case(case_id)

    async def create_case(
        self,
        txid: str,
        description: str,
        created_by: int,
        priority: str = "medium",
    ) -> dict[str, Any]:
        """Open a new, unassigned case."""
        creator = await self._require_user(created_by)
        self._require_permission(creator, Resource.CASE, Action.CREATE)

        cleaned_txid = (txid or "").strip()
        if not cleaned_txid:
            raise ValidationError("Transaction ID is required", details={"txid": txid})
        cleaned_description = self._validate_description(description)
        priority = lifecycle.coerce_priority(priority).value

        await self._ensure_txid_available(cleaned_txid)

        case = await self.repo.create(
            txid=cleaned_txid,
            description=cleaned_description,
            priority=priority,
            created_by=created_by,
        )
        if case is None:
            # Lost a race with a concurrent create of the same txid
            raise ConflictError(
                "A fraud case already exists for this transaction ID",
                details={"txid": cleaned_txid},
            )
        self.logger.info(
            "case_created",
            case_id=case["id"],
            txid=cleaned_txid,
            priority=priority,
            created_by=created_by,
        )
        return case

    async def assign_case(
        self, case_id: int, assigned_to: int, assigned_by: int
    ) -> dict[str, Any]:
        """Assign a case and move it to in_progress.

        Assignment always resets the status to in_progress, whatever it was.
        Calling it again simply overwrites the assignee.
        """
        case = await self._require_case(case_id, for_update=True)
        lifecycle.ensure_not_closed(case, "assign")

        assignee = await self.users.get_by_id(assigned_to)
        lifecycle.ensure_assignee_eligible(assignee, assigned_to)

        assigner = await self.users.get_by_id(assigned_by)
        lifecycle.ensure_assigner_eligible(assigner, assigned_by)

        updated = await self.repo.update(
            case_id,
            {"assigned_to": assigned_to, "status": CaseStatus.IN_PROGRESS.value},
        )
        self.logger.info(
            "case_assigned",
            case_id=case_id,
            assigned_to=assigned_to,
            assigned_by=assigned_by,
            previous_status=case["status"],
        )
        return updated

    async def update_case(
        self,
        case_id: int,
        fields: dict[str, Any],
        acting_user_id: int,
    ) -> dict[str, Any]:
        """Apply a partial update.

        Admins may update any case; investigators and analysts only the cases
        assigned to them. Only keys present in ``fields`` change.
        """
        case = await self._require_case(case_id, for_update=True)
        user = await self._require_user(acting_user_id)
        lifecycle.ensure_can_modify(user, case, "update")
        lifecycle.ensure_not_closed(case, "update")

        changes: dict[str, Any] = {}

        if fields.get("status") is not None:
            lifecycle.validate_status_change(case, fields["status"])
            changes["status"] = lifecycle.coerce_status(fields["status"]).value

        if fields.get("priority") is not None:
            changes["priority"] = lifecycle.coerce_priority(fields["priority"]).value

        if fields.get("description") is not None:
            changes["description"] = self._validate_description(fields["description"])

        if "assigned_to" in fields:
            assignee_id = fields["assigned_to"]
            if assignee_id is not None and not await self.users.get_by_id(assignee_id):
                raise NotFoundError(
                    "Assigned user not found",
                    details={"assigned_to": assignee_id},
                )
            changes["assigned_to"] = assignee_id

        if fields.get("txid") is not None:
            new_txid = fields["txid"].strip()
            if not new_txid:
                raise ValidationError(
                    "Transaction ID is required", details={"txid": fields["txid"]}
                )
            if new_txid != case["txid"]:
                await self._ensure_txid_available(new_txid)
            changes["txid"] = new_txid

        async with unique_or_conflict(
            self.session,
            "A fraud case already exists for this transaction ID",
            details={"txid": changes.get("txid")},
        ):
            updated = await self.repo.update(case_id, changes)
        self.logger.info(
            "case_updated",
            case_id=case_id,
            user_id=acting_user_id,
            fields=sorted(changes),
        )
        return updated

    async def escalate_case(
        self,
        case_id: int,
        escalated_by: int,
        new_priority: str,
        reason: str,
        escalated_to: int | None = None,
        new_status: str | None = None,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Escalate a case and record it in the escalation ledger.

        Without ``new_status`` the case always becomes ``escalated``. The case
        update and the ledger entry are written together or not at all.

        Returns:
            The updated case and the new escalation record.
        """
        case = await self._require_case(case_id, for_update=True)
        cleaned_reason = lifecycle.validate_reason(reason, self.workflow.min_reason_length)

        escalator = await self._require_user(escalated_by)
        self._require_permission(escalator, Resource.CASE, Action.ESCALATE)
        self._require_visible(escalator, case)
        lifecycle.ensure_not_closed(case, "escalate")

        target_priority = lifecycle.coerce_priority(new_priority).value
        target_status = lifecycle.resolve_escalation_status(new_status).value

        changes: dict[str, Any] = {"status": target_status, "priority": target_priority}
        if escalated_to is not None:
            target = await self.users.get_by_id(escalated_to)
            lifecycle.ensure_escalation_target_eligible(target, escalated_to)
            changes["assigned_to"] = escalated_to

        async with atomic(self.session):
            updated = await self.repo.update(case_id, changes)
            record = await self.escalations.create(
                case_id=case_id,
                escalated_by=escalated_by,
                escalated_to=escalated_to,
                previous_status=case["status"],
                new_status=target_status,
                previous_priority=case["priority"],
                new_priority=target_priority,
                reason=cleaned_reason,
            )

        self.logger.info(
            "case_escalated",
            case_id=case_id,
            escalated_by=escalated_by,
            escalated_to=escalated_to,
            previous_status=case["status"],
            new_status=target_status,
            previous_priority=case["priority"],
            new_priority=target_priority,
        )
        return updated, record

    async def close_case(self, case_id: int, acting_user_id: int) -> dict[str, Any]:
        """Close a resolved case. Closing is final."""
        case = await self._require_case(case_id, for_update=True)
        user = await self._require_user(acting_user_id)
        lifecycle.ensure_closable(case)
        lifecycle.ensure_can_modify(user, case, "close")

        updated = await self.repo.update(case_id, {"status": CaseStatus.CLOSED.value})
        self.logger.info("case_closed", case_id=case_id, user_id=acting_user_id)
        return updated
