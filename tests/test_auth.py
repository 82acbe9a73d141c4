"""Unit tests for session-based caller identification."""

from unittest.mock import patch

import pytest

from app.core.auth import CurrentUser, authenticate, parse_user_id, require_admin
from app.core.errors import AuthenticationAppError, ForbiddenAppError
from app.schemas.user import Role


class TestParseUserId:
    """Test header value parsing."""

    @pytest.mark.parametrize("raw, expected", [("42", 42), (" 7 ", 7), ("0", 0)])
    def test_parses_digits(self, raw: str, expected: int) -> None:
        assert parse_user_id(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "-1", "1.5", "1 2"])
    def test_rejects_non_digits(self, raw) -> None:
        assert parse_user_id(raw) is None


class TestAuthenticate:
    """Test the session lookup behind the X-User-Id header."""

    def test_missing_id_raises(self, container) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticate(container, None)
        assert exc_info.value.code == "not_authenticated"

    def test_no_session_raises(self, container) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticate(container, 1)
        assert exc_info.value.code == "session_expired"

    def test_role_comes_from_session(self, container) -> None:
        container.sessions.create(user_id=3, username="root", role=Role.ADMIN)

        user = authenticate(container, 3)

        assert user == CurrentUser(id=3, username="root", role=Role.ADMIN)
        assert user.is_admin is True

    def test_refreshes_last_activity(self, container, clock) -> None:
        session = container.sessions.create(user_id=3, username="ana", role=Role.USER)
        clock.advance(120)

        authenticate(container, 3)

        assert container.sessions.get(3).last_activity > session.last_activity

    @patch("app.core.auth.settings")
    def test_uses_configured_inactivity_window(self, mock_settings, container, clock) -> None:
        mock_settings.app.session_max_inactive_minutes = 5
        container.sessions.create(user_id=3, username="ana", role=Role.USER)
        clock.advance(6 * 60)

        with pytest.raises(AuthenticationAppError):
            authenticate(container, 3)


class TestRequireAdmin:
    def test_rejects_regular_user(self) -> None:
        with pytest.raises(ForbiddenAppError) as exc_info:
            require_admin(CurrentUser(id=1, username="ana", role=Role.USER))
        assert exc_info.value.code == "admin_required"

    def test_returns_admin(self) -> None:
        admin = CurrentUser(id=2, username="root", role=Role.ADMIN)
        assert require_admin(admin) is admin
