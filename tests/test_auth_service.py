"""Tests for sign-up, OAuth sign-in, sign-out and the validators."""

import pytest

from admin_console.backend import BackendCallError, MalformedResponseError
from admin_console.models.auth_models import AuthErrorCode
from admin_console.models.enums import ActivityType, SessionStatus, UserRole
from admin_console.models.identity import Identity
from admin_console.models.profile import ProfileCreate
from admin_console.services.auth_service import AuthService


@pytest.fixture
def auth_service(backend, session, profile_repo, activity_log, config, logger):
    return AuthService(
        backend=backend,
        session=session,
        profile_repo=profile_repo,
        activity_log=activity_log,
        config=config,
        logger=logger,
    )


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

class TestValidators:
    """Static validation helpers."""

    @pytest.mark.parametrize("email", ["b@x.com", "first.last+tag@sub.example.org"])
    def test_valid_emails(self, email):
        assert AuthService.validate_email(email).is_valid

    @pytest.mark.parametrize("email", ["", "   ", "no-at-sign", "a@", "@x.com", "a@x"])
    def test_invalid_emails(self, email):
        result = AuthService.validate_email(email)
        assert not result.is_valid
        assert result.error_message

    def test_password_length_uses_configured_minimum(self):
        assert not AuthService.validate_password("12345", 6).is_valid
        assert AuthService.validate_password("123456", 6).is_valid
        assert "at least 6" in AuthService.validate_password("", 6).error_message

    def test_name_rejects_control_characters(self):
        assert not AuthService.validate_name("Bea\nAdmin").is_valid
        assert not AuthService.validate_name("   ").is_valid
        assert AuthService.validate_name("Bea Admin").is_valid


# ---------------------------------------------------------------------------
# Sign-up
# ---------------------------------------------------------------------------

class TestSignUp:
    """Identity creation followed by profile insert."""

    def test_creates_admin_profile(self, auth_service, backend, profile_repo, activity_log):
        backend.create_account.return_value = Identity(id="new-id", email="new@x.com")

        result = auth_service.sign_up("New@X.com", "secret1", "New Admin")

        assert result.success
        backend.create_account.assert_called_once_with(
            "new@x.com", "secret1", {"full_name": "New Admin"},
        )
        profile_repo.insert.assert_called_once_with(
            ProfileCreate(id="new-id", email="new@x.com", full_name="New Admin"),
        )
        inserted = profile_repo.insert.call_args.args[0]
        assert inserted.role == UserRole.ADMIN
        activity_log.record.assert_called_once_with(
            "new-id", ActivityType.ACTION, "New admin account created: new@x.com",
        )

    def test_backend_rejection_is_sign_up_failed(self, auth_service, backend, profile_repo):
        backend.create_account.side_effect = BackendCallError("User already registered", status=422)

        result = auth_service.sign_up("b@x.com", "secret1", "Bea")

        assert result.error_code == AuthErrorCode.SIGN_UP_FAILED
        assert result.error_message == "User already registered"
        profile_repo.insert.assert_not_called()

    def test_malformed_response_is_backend_error(self, auth_service, backend, profile_repo):
        backend.create_account.side_effect = MalformedResponseError("no user")

        result = auth_service.sign_up("b@x.com", "secret1", "Bea")

        assert result.error_code == AuthErrorCode.BACKEND_ERROR
        profile_repo.insert.assert_not_called()

    def test_profile_insert_failure_leaves_identity(self, auth_service, backend, profile_repo):
        backend.create_account.return_value = Identity(id="new-id", email="new@x.com")
        profile_repo.insert.side_effect = BackendCallError("permission denied", code="42501")

        result = auth_service.sign_up("new@x.com", "secret1", "New Admin")

        assert result.error_code == AuthErrorCode.PROFILE_CREATION_FAILED
        backend.sign_out.assert_not_called()

    def test_activity_log_failure_is_not_fatal(self, auth_service, backend, activity_log):
        backend.create_account.return_value = Identity(id="new-id", email="new@x.com")
        activity_log.record.return_value = False

        assert auth_service.sign_up("new@x.com", "secret1", "New Admin").success

    @pytest.mark.parametrize(
        ("email", "password", "name"),
        [
            ("not-an-email", "secret1", "Bea"),
            ("b@x.com", "short", "Bea"),
            ("b@x.com", "secret1", "  "),
        ],
    )
    def test_local_validation_runs_before_backend(self, auth_service, backend, email, password, name):
        result = auth_service.sign_up(email, password, name)

        assert result.error_code == AuthErrorCode.SIGN_UP_FAILED
        backend.create_account.assert_not_called()


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------

class TestOAuth:
    """OAuth redirect computation."""

    def test_uses_site_url_for_remote_origin(self, auth_service, backend):
        backend.oauth_sign_in.return_value = "https://accounts.google.com/o/oauth2/auth?x=1"

        result = auth_service.sign_in_with_oauth(observed_origin="https://preview.example.net")

        assert result.success
        assert result.redirect_url == "https://accounts.google.com/o/oauth2/auth?x=1"
        backend.oauth_sign_in.assert_called_once_with(
            "google", "https://console.example.com/auth/callback",
        )

    def test_prefers_local_development_origin(self, auth_service, backend):
        backend.oauth_sign_in.return_value = "https://provider/auth"

        auth_service.sign_in_with_oauth(observed_origin="http://127.0.0.1:5173/")

        backend.oauth_sign_in.assert_called_once_with(
            "google", "http://127.0.0.1:5173/auth/callback",
        )

    def test_failure_is_auth_failed(self, auth_service, backend):
        backend.oauth_sign_in.side_effect = BackendCallError("Unsupported provider")

        result = auth_service.sign_in_with_oauth("github")

        assert result.error_code == AuthErrorCode.AUTH_FAILED
        assert result.error_message == "Unsupported provider"


# ---------------------------------------------------------------------------
# Sign-out
# ---------------------------------------------------------------------------

class TestSignOut:
    """Local-first sign-out with a single retry."""

    @pytest.fixture(autouse=True)
    def _signed_in(self, session, admin_identity, admin_profile):
        session.set_authenticated(admin_identity, admin_profile)

    def test_logs_then_signs_out(self, auth_service, backend, activity_log, session):
        result = auth_service.sign_out()

        assert result.success
        activity_log.record.assert_called_once_with(
            "user-b", ActivityType.LOGOUT, "Admin b@x.com logged out",
        )
        backend.sign_out.assert_called_once()
        assert session.state.status == SessionStatus.ANONYMOUS

    def test_retries_once(self, auth_service, backend):
        backend.sign_out.side_effect = [BackendCallError("blip"), None]

        result = auth_service.sign_out()

        assert result.success
        assert backend.sign_out.call_count == 2

    def test_second_failure_is_reported_but_state_cleared(self, auth_service, backend, session):
        backend.sign_out.side_effect = BackendCallError("down")

        result = auth_service.sign_out()

        assert result.error_code == AuthErrorCode.SIGN_OUT_FAILED
        assert backend.sign_out.call_count == 2
        assert session.state.status == SessionStatus.ANONYMOUS

    def test_activity_log_failure_does_not_block(self, auth_service, backend, activity_log):
        activity_log.record.return_value = False

        assert auth_service.sign_out().success
        backend.sign_out.assert_called_once()


def test_sign_out_attributes_backend_session_when_store_is_empty(
    auth_service, backend, activity_log,
):
    backend.current_session.return_value = Identity(id="user-o", email="o@x.com")

    auth_service.sign_out()

    activity_log.record.assert_called_once_with(
        "user-o", ActivityType.LOGOUT, "Admin o@x.com logged out",
    )
