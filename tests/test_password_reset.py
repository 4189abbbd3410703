"""Tests for the password reset request, recovery and update phases."""

import pytest

from admin_console.backend import BackendCallError
from admin_console.models.auth_models import AuthErrorCode
from admin_console.models.enums import ActivityType
from admin_console.models.identity import Identity
from admin_console.services.password_reset import PasswordResetService


@pytest.fixture
def reset_service(backend, session, activity_log, config, logger):
    return PasswordResetService(
        backend=backend,
        session=session,
        activity_log=activity_log,
        config=config,
        logger=logger,
    )


# ---------------------------------------------------------------------------
# Request phase
# ---------------------------------------------------------------------------

class TestRequestReset:
    """Sending the reset email."""

    def test_prefers_observed_origin(self, reset_service, backend):
        reset_service.request_reset("b@x.com", observed_origin="https://admin.example.org/")

        backend.request_password_reset.assert_called_once_with(
            "b@x.com", "https://admin.example.org/reset-password",
        )

    def test_falls_back_to_site_url(self, reset_service, backend):
        reset_service.request_reset("b@x.com")

        backend.request_password_reset.assert_called_once_with(
            "b@x.com", "https://console.example.com/reset-password",
        )

    def test_falls_back_to_default_without_site_url(
        self, backend, session, activity_log, config, logger,
    ):
        service = PasswordResetService(
            backend=backend,
            session=session,
            activity_log=activity_log,
            config=config.model_copy(update={"SITE_URL": ""}),
            logger=logger,
        )

        service.request_reset("b@x.com")

        backend.request_password_reset.assert_called_once_with(
            "b@x.com", "http://localhost:5173/reset-password",
        )

    def test_repeated_requests_are_indistinguishable(self, reset_service):
        first = reset_service.request_reset("a@x.com")
        second = reset_service.request_reset("a@x.com")

        assert first.success and second.success
        assert first.message == second.message
        assert "a@x.com" not in first.message

    def test_logs_anonymous_entry_without_session(self, reset_service, activity_log):
        reset_service.request_reset("B@x.com")

        activity_log.record.assert_called_once_with(
            None, ActivityType.PASSWORD_RESET, "Password reset requested for: b@x.com",
        )

    def test_attributes_entry_to_backend_session(self, reset_service, backend, activity_log):
        backend.current_session.return_value = Identity(id="user-b", email="b@x.com")

        reset_service.request_reset("c@x.com")

        assert activity_log.record.call_args.args[0] == "user-b"

    def test_backend_error_is_reset_request_failed(self, reset_service, backend, activity_log):
        backend.request_password_reset.side_effect = BackendCallError("SMTP error", status=500)

        result = reset_service.request_reset("b@x.com")

        assert result.error_code == AuthErrorCode.RESET_REQUEST_FAILED
        activity_log.record.assert_not_called()

    def test_invalid_email_never_reaches_backend(self, reset_service, backend):
        result = reset_service.request_reset("nope")

        assert result.error_code == AuthErrorCode.RESET_REQUEST_FAILED
        backend.request_password_reset.assert_not_called()

    def test_activity_log_failure_is_not_fatal(self, reset_service, activity_log):
        activity_log.record.return_value = False

        assert reset_service.request_reset("b@x.com").success


# ---------------------------------------------------------------------------
# Recovery phase
# ---------------------------------------------------------------------------

class TestVerifyRecoveryLink:
    """Exactly one recovery path is attempted."""

    def test_code_only_uses_code_exchange(self, reset_service, backend):
        result = reset_service.verify_recovery_link("https://console.example.com/reset-password?code=abc")

        assert result.success
        backend.exchange_code_for_session.assert_called_once_with("abc")
        backend.establish_session_from_tokens.assert_not_called()
        backend.verify_one_time_token.assert_not_called()

    def test_relative_url_is_rewritten_without_query(self, reset_service, backend):
        result = reset_service.verify_recovery_link("/reset-password?code=abc123")

        backend.exchange_code_for_session.assert_called_once_with("abc123")
        assert result.redirect_url == "/reset-password"

    def test_fragment_token_pair(self, reset_service, backend):
        result = reset_service.verify_recovery_link(
            "https://console.example.com/reset-password#access_token=X&refresh_token=Y&type=recovery"
        )

        assert result.success
        assert result.redirect_url == "https://console.example.com/reset-password"
        backend.establish_session_from_tokens.assert_called_once_with("X", "Y")
        backend.exchange_code_for_session.assert_not_called()

    def test_token_and_email(self, reset_service, backend):
        reset_service.verify_recovery_link("/reset-password?token=123456&email=b%40x.com")

        backend.verify_one_time_token.assert_called_once_with(
            "recovery", token="123456", email="b@x.com",
        )

    def test_token_hash(self, reset_service, backend):
        reset_service.verify_recovery_link("/reset-password?token_hash=pkce_abc&type=recovery")

        backend.verify_one_time_token.assert_called_once_with("recovery", token_hash="pkce_abc")

    def test_no_parameters_is_invalid_link(self, reset_service, backend):
        result = reset_service.verify_recovery_link("https://console.example.com/reset-password")

        assert result.error_code == AuthErrorCode.INVALID_RECOVERY_LINK
        backend.exchange_code_for_session.assert_not_called()
        backend.establish_session_from_tokens.assert_not_called()
        backend.verify_one_time_token.assert_not_called()

    def test_backend_error_is_expired_or_invalid(self, reset_service, backend):
        backend.exchange_code_for_session.side_effect = BackendCallError(
            "invalid flow state, no valid flow state found", status=404,
        )

        result = reset_service.verify_recovery_link("/reset-password?code=stale")

        assert result.error_code == AuthErrorCode.EXPIRED_OR_INVALID_LINK
        backend.establish_session_from_tokens.assert_not_called()


# ---------------------------------------------------------------------------
# Update phase
# ---------------------------------------------------------------------------

class TestUpdatePassword:
    """Local checks first, then the backend update."""

    @pytest.mark.parametrize(
        ("new", "confirm", "expected"),
        [
            ("secret1", "secret2", AuthErrorCode.PASSWORD_MISMATCH),
            ("abc", "abd", AuthErrorCode.PASSWORD_MISMATCH),
            ("abc", "abc", AuthErrorCode.PASSWORD_TOO_SHORT),
            ("", "", AuthErrorCode.PASSWORD_TOO_SHORT),
        ],
    )
    def test_local_rejections_skip_backend(self, reset_service, backend, new, confirm, expected):
        result = reset_service.update_password(new, confirm)

        assert result.error_code == expected
        backend.update_password.assert_not_called()

    def test_too_short_message_names_minimum(self, reset_service):
        result = reset_service.update_password("abc", "abc")

        assert result.error_message == "Password must be at least 6 characters."

    def test_expired_session_is_link_expired(self, reset_service, backend):
        backend.update_password.side_effect = BackendCallError("Token has expired or is invalid")

        result = reset_service.update_password("secret1", "secret1")

        assert result.error_code == AuthErrorCode.LINK_EXPIRED

    def test_other_error_is_update_failed_with_message(self, reset_service, backend):
        backend.update_password.side_effect = BackendCallError(
            "New password should be different from the old password.", status=422,
        )

        result = reset_service.update_password("secret1", "secret1")

        assert result.error_code == AuthErrorCode.UPDATE_FAILED
        assert result.error_message == "New password should be different from the old password."

    def test_success_redirects_after_delay(
        self, reset_service, backend, activity_log, session, admin_identity, admin_profile,
    ):
        session.set_authenticated(admin_identity, admin_profile)

        result = reset_service.update_password("secret1", "secret1")

        assert result.success
        assert result.redirect_url == "/"
        assert result.redirect_delay_s == 2.0
        backend.update_password.assert_called_once_with("secret1")
        activity_log.record.assert_called_once_with(
            "user-b", ActivityType.PASSWORD_RESET, "Password successfully reset",
        )
