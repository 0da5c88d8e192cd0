"""Unit tests for PermissionService."""

import pytest

from case_tracker.services.permission_service import PermissionService


@pytest.fixture
def permission_service(mock_session, fake_user_repository):
    service = PermissionService(mock_session)
    service.users = fake_user_repository
    return service


class TestPermissionService:
    """Tests for stored-user permission checks."""

    @pytest.mark.asyncio
    async def test_role_is_resolved(self, permission_service, users):
        investigator = users["investigator"]["id"]
        assert await permission_service.check_permission(investigator, "case", "assign") is True
        assert await permission_service.check_permission(investigator, "user", "create") is False

    @pytest.mark.asyncio
    async def test_admin_bypass(self, permission_service, users):
        assert await permission_service.check_permission(users["admin"]["id"], "user", "delete")

    @pytest.mark.asyncio
    async def test_unknown_user_denied(self, permission_service, users):
        assert await permission_service.check_permission(999, "case", "read") is False

    @pytest.mark.asyncio
    async def test_unknown_resource_or_action_denied(self, permission_service, users):
        admin = users["admin"]["id"]
        assert await permission_service.check_permission(admin, "report", "read") is False
        assert await permission_service.check_permission(admin, "case", "approve") is False
