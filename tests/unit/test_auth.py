"""Unit tests for acting-user resolution and permission dependencies."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from case_tracker.core.auth import (
    ActingUser,
    get_acting_user,
    get_acting_user_id,
    require_permission,
)
from case_tracker.core.errors import ForbiddenError, UnauthorizedError
from case_tracker.domain.permissions import Action, Resource, Role


def request_with_headers(headers: dict) -> MagicMock:
    request = MagicMock()
    request.headers = headers
    return request


class TestGetActingUserId:
    """Test reading the identity header."""

    def test_valid_header(self):
        assert get_acting_user_id(request_with_headers({"X-User-ID": " 42 "})) == 42

    @pytest.mark.parametrize("value", ["", "   ", "abc", "0", "-3", "1.5"])
    def test_invalid_header(self, value):
        with pytest.raises(UnauthorizedError):
            get_acting_user_id(request_with_headers({"X-User-ID": value}))

    def test_missing_header(self):
        with pytest.raises(UnauthorizedError, match="Missing"):
            get_acting_user_id(request_with_headers({}))

    def test_configurable_header_name(self):
        settings = MagicMock()
        settings.security.user_header = "X-Acting-User"
        with patch("case_tracker.core.auth.get_settings", return_value=settings):
            assert get_acting_user_id(request_with_headers({"X-Acting-User": "7"})) == 7


class TestGetActingUser:
    """Test role lookup for the acting user."""

    @pytest.mark.asyncio
    async def test_known_user(self, mock_session):
        with patch("case_tracker.core.auth.UserRepository") as repo_class:
            repo_class.return_value.get_role = AsyncMock(return_value="analyst")
            user = await get_acting_user(user_id=3, session=mock_session)
        assert user == ActingUser(user_id=3, role=Role.ANALYST)

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_session):
        with patch("case_tracker.core.auth.UserRepository") as repo_class:
            repo_class.return_value.get_role = AsyncMock(return_value=None)
            with pytest.raises(UnauthorizedError):
                await get_acting_user(user_id=3, session=mock_session)


class TestRequirePermission:
    """Test the permission dependency factory."""

    def test_allowed(self):
        checker = require_permission(Resource.USER, Action.READ)
        user = ActingUser(user_id=4, role=Role.VIEWER)
        assert checker(user=user) is user

    def test_admin_bypass(self):
        checker = require_permission(Resource.USER, Action.DELETE)
        user = ActingUser(user_id=1, role=Role.ADMIN)
        assert checker(user=user) is user

    def test_denied_sanitized(self):
        checker = require_permission(Resource.USER, Action.CREATE)
        settings = MagicMock()
        settings.security.sanitize_errors = True
        with patch("case_tracker.core.auth.get_settings", return_value=settings):
            with pytest.raises(ForbiddenError) as exc_info:
                checker(user=ActingUser(user_id=2, role=Role.INVESTIGATOR))
        assert exc_info.value.details == {}

    def test_denied_with_details(self):
        checker = require_permission(Resource.USER, Action.CREATE)
        settings = MagicMock()
        settings.security.sanitize_errors = False
        with patch("case_tracker.core.auth.get_settings", return_value=settings):
            with pytest.raises(ForbiddenError) as exc_info:
                checker(user=ActingUser(user_id=2, role=Role.INVESTIGATOR))
        assert exc_info.value.details == {
            "required_permission": "user:create",
            "role": "investigator",
        }
