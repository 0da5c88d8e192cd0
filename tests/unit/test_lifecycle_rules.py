"""Unit tests for the pure case lifecycle rules."""

import pytest

from case_tracker.core.errors import ForbiddenError, InvalidStateError, ValidationError
from case_tracker.domain import lifecycle
from case_tracker.domain.lifecycle import CaseStatus


def make_case(status="open", assigned_to=None):
    return {"id": 1, "status": status, "priority": "medium", "assigned_to": assigned_to}


class TestStatusChanges:
    """Test status changes made through a plain update."""

    @pytest.mark.parametrize("current", ["open", "in_progress", "escalated", "resolved"])
    @pytest.mark.parametrize("target", ["open", "in_progress", "escalated", "resolved"])
    def test_any_non_closing_status_is_allowed(self, current, target):
        lifecycle.validate_status_change(make_case(current), target)

    def test_closing_from_resolved(self):
        lifecycle.validate_status_change(make_case("resolved"), "closed")

    @pytest.mark.parametrize("current", ["open", "in_progress", "escalated"])
    def test_closing_requires_resolved(self, current):
        with pytest.raises(InvalidStateError) as exc_info:
            lifecycle.validate_status_change(make_case(current), "closed")
        assert exc_info.value.details["current_status"] == current
        assert exc_info.value.details["requested_status"] == "closed"

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationError):
            lifecycle.validate_status_change(make_case("open"), "archived")


class TestClosing:
    """Test the close precondition."""

    def test_resolved_is_closable(self):
        lifecycle.ensure_closable(make_case("resolved"))

    @pytest.mark.parametrize("status", ["open", "in_progress", "escalated", "closed"])
    def test_other_statuses_are_not(self, status):
        with pytest.raises(InvalidStateError):
            lifecycle.ensure_closable(make_case(status))

    def test_closed_is_terminal(self):
        with pytest.raises(InvalidStateError, match="closed"):
            lifecycle.ensure_not_closed(make_case("closed"), "assign")
        lifecycle.ensure_not_closed(make_case("resolved"), "assign")


class TestModifyRights:
    """Test who may update or close a case."""

    def test_admin_modifies_any_case(self):
        assert lifecycle.can_modify_case("admin", 99, make_case(assigned_to=None)) is True

    @pytest.mark.parametrize("role", ["investigator", "analyst"])
    def test_handlers_modify_only_assigned(self, role):
        assert lifecycle.can_modify_case(role, 5, make_case(assigned_to=5)) is True
        assert lifecycle.can_modify_case(role, 5, make_case(assigned_to=6)) is False
        assert lifecycle.can_modify_case(role, 5, make_case(assigned_to=None)) is False

    def test_viewer_never_modifies(self):
        assert lifecycle.can_modify_case("viewer", 5, make_case(assigned_to=5)) is False

    def test_ensure_can_modify_raises_forbidden(self):
        user = {"id": 5, "role": "analyst"}
        with pytest.raises(ForbiddenError) as exc_info:
            lifecycle.ensure_can_modify(user, make_case(assigned_to=6), "update")
        assert exc_info.value.details == {"case_id": 1, "user_id": 5, "role": "analyst"}


class TestAssignmentEligibility:
    """Test assignee and assigner role checks."""

    @pytest.mark.parametrize("role", ["investigator", "analyst"])
    def test_eligible_assignees(self, role):
        lifecycle.ensure_assignee_eligible({"id": 2, "role": role}, 2)

    @pytest.mark.parametrize("role", ["admin", "viewer"])
    def test_ineligible_assignees(self, role):
        with pytest.raises(ValidationError):
            lifecycle.ensure_assignee_eligible({"id": 2, "role": role}, 2)

    def test_missing_assignee(self):
        with pytest.raises(ValidationError, match="does not exist"):
            lifecycle.ensure_assignee_eligible(None, 2)

    @pytest.mark.parametrize("role", ["admin", "investigator", "analyst"])
    def test_eligible_assigners(self, role):
        lifecycle.ensure_assigner_eligible({"id": 1, "role": role}, 1)

    def test_viewer_cannot_assign(self):
        with pytest.raises(ForbiddenError):
            lifecycle.ensure_assigner_eligible({"id": 1, "role": "viewer"}, 1)

    def test_missing_assigner(self):
        with pytest.raises(ForbiddenError):
            lifecycle.ensure_assigner_eligible(None, 1)


class TestEscalationRules:
    """Test escalation status, target and reason rules."""

    def test_default_status_is_escalated(self):
        assert lifecycle.resolve_escalation_status(None) is CaseStatus.ESCALATED

    def test_explicit_status_is_kept(self):
        assert lifecycle.resolve_escalation_status("resolved") is CaseStatus.RESOLVED

    def test_escalation_cannot_close(self):
        with pytest.raises(ValidationError):
            lifecycle.resolve_escalation_status("closed")

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_blank_reason_rejected(self, reason):
        with pytest.raises(ValidationError):
            lifecycle.validate_reason(reason)

    def test_reason_minimum_length(self):
        with pytest.raises(ValidationError):
            lifecycle.validate_reason("too short", min_length=10)
        assert lifecycle.validate_reason("  needs senior review ", min_length=10) == (
            "needs senior review"
        )

    def test_viewer_cannot_be_escalation_target(self):
        with pytest.raises(ValidationError):
            lifecycle.ensure_escalation_target_eligible({"id": 4, "role": "viewer"}, 4)
        lifecycle.ensure_escalation_target_eligible({"id": 1, "role": "admin"}, 1)

    @pytest.mark.parametrize("role", ["admin", "investigator", "analyst"])
    def test_escalation_history_roles(self, role):
        lifecycle.ensure_can_read_escalations({"id": 1, "role": role})

    def test_viewer_denied_escalation_history(self):
        with pytest.raises(ForbiddenError):
            lifecycle.ensure_can_read_escalations({"id": 4, "role": "viewer"})
