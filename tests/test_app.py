"""Tests for view selection, guards and the application root."""

import pytest

from admin_console.app import AdminConsole, create_app, resolve_view
from admin_console.guards import (
    AuthenticationError,
    AuthorizationError,
    require_auth,
    require_role,
)
from admin_console.models.enums import SessionStatus, UserRole, ViewName
from admin_console.models.identity import SessionState


class TestResolveView:
    """Screen selection."""

    def test_loading(self):
        assert resolve_view(SessionState(), "/") == ViewName.LOADING

    def test_loading_wins_over_reset_path(self):
        assert resolve_view(SessionState(), "/reset-password") == ViewName.LOADING

    @pytest.mark.parametrize(
        "path",
        ["/reset-password", "/reset-password/", "/reset-password?code=abc", "https://h/reset-password#x"],
    )
    def test_reset_page_regardless_of_session(self, path, admin_identity, admin_profile):
        anonymous = SessionState(status=SessionStatus.ANONYMOUS)
        signed_in = SessionState(
            status=SessionStatus.AUTHENTICATED, identity=admin_identity, profile=admin_profile,
        )

        assert resolve_view(anonymous, path) == ViewName.RESET_PASSWORD
        assert resolve_view(signed_in, path) == ViewName.RESET_PASSWORD

    def test_anonymous_gets_auth(self):
        assert resolve_view(SessionState(status=SessionStatus.ANONYMOUS), "/") == ViewName.AUTH

    def test_admin_dashboard(self, admin_identity, admin_profile):
        state = SessionState(
            status=SessionStatus.AUTHENTICATED, identity=admin_identity, profile=admin_profile,
        )
        assert resolve_view(state, "/") == ViewName.ADMIN_DASHBOARD

    def test_superadmin_dashboard(self, superadmin_identity, superadmin_profile):
        state = SessionState(
            status=SessionStatus.AUTHENTICATED,
            identity=superadmin_identity,
            profile=superadmin_profile,
        )
        assert resolve_view(state, "/anything") == ViewName.SUPERADMIN_DASHBOARD


class TestGuards:
    """Decorator guards over the session store."""

    def test_require_auth(self, session, admin_identity, admin_profile):
        guarded = require_auth(session)(lambda: "ok")

        with pytest.raises(AuthenticationError):
            guarded()

        session.set_authenticated(admin_identity, admin_profile)
        assert guarded() == "ok"

    def test_require_role(self, session, admin_identity, admin_profile):
        guarded = require_role(session, {UserRole.SUPERADMIN})(lambda: "ok")

        with pytest.raises(AuthenticationError):
            guarded()

        session.set_authenticated(admin_identity, admin_profile)
        with pytest.raises(AuthorizationError):
            guarded()


class TestAdminConsole:
    """Composition root."""

    def test_create_app_wires_services(self, config, backend):
        console = create_app(config=config, backend=backend)

        assert isinstance(console, AdminConsole)
        assert set(console.services) == {
            "auth_service",
            "password_reset_service",
            "session_sync_service",
            "activity_log_service",
            "dashboard_service",
        }
        assert console.current_view("/") == ViewName.LOADING

    def test_start_resolves_session_once(self, config, backend):
        console = create_app(config=config, backend=backend)

        console.start()
        console.start()

        backend.current_session.assert_called_once()
        assert console.current_view("/") == ViewName.AUTH

    def test_stop_cancels_subscription(self, config, backend):
        console = create_app(config=config, backend=backend)
        console.start()

        console.stop()

        backend.on_session_change.return_value.assert_called_once_with()

    def test_subscribe_sees_start_transition(self, config, backend):
        console = create_app(config=config, backend=backend)
        seen = []
        console.subscribe(lambda state: seen.append(state.status))

        console.start()

        assert seen == [SessionStatus.ANONYMOUS]
