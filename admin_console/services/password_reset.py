"""
Password Reset Service.

Three phases, each a request → ``AuthResult`` method:

- :meth:`PasswordResetService.request_reset` asks the backend to email
  a recovery link.  Success never reveals whether the address is
  registered.
- :meth:`PasswordResetService.verify_recovery_link` turns the link the
  user followed into an active recovery session.
- :meth:`PasswordResetService.update_password` sets the new password on
  that session.
"""

from __future__ import annotations

import logging
from typing import Optional

from admin_console.auth import SessionStore
from admin_console.backend import BackendCallError, SupabaseBackend
from admin_console.config import AppConfig
from admin_console.logger import StructuredLogger
from admin_console.models.auth_models import (
    AUTH_ERROR_MESSAGES,
    AuthErrorCode,
    AuthResult,
    RecoveryLink,
)
from admin_console.models.enums import ActivityType, RecoveryMethod
from admin_console.services.activity_log import ActivityLogService
from admin_console.services.auth_service import AuthService
from admin_console.services.base_service import BaseService
from admin_console.utils.recovery_link import parse_recovery_link
from admin_console.utils.urls import reset_redirect_url

_RECOVERY_OTP_TYPE = "recovery"
_EXPIRY_MARKER = "expired"


class PasswordResetService(BaseService):
    """Password reset request, recovery-link verification and update.

    Parameters
    ----------
    backend:
        Supabase facade.
    session:
        Session state holder, read to attribute activity entries.
    activity_log:
        Best-effort activity entry writer.
    config:
        Redirect targets and password policy.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        backend: SupabaseBackend,
        session: SessionStore,
        activity_log: ActivityLogService,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._backend: SupabaseBackend = backend
        self._session: SessionStore = session
        self._activity: ActivityLogService = activity_log
        self._config: AppConfig = config

    # ------------------------------------------------------------------
    # Request phase
    # ------------------------------------------------------------------

    def request_reset(self, email: str, observed_origin: Optional[str] = None) -> AuthResult:
        """Send a password-reset email.

        Parameters
        ----------
        email:
            Address to send the link to.
        observed_origin:
            Origin the surface is served from (e.g. the browser's
            ``location.origin``).  Preferred over ``SITE_URL``.
        """
        email = AuthService.normalize_email(email)
        check = AuthService.validate_email(email)
        if not check.is_valid:
            return AuthResult.failure(AuthErrorCode.RESET_REQUEST_FAILED, check.error_message)

        redirect_to = reset_redirect_url(
            observed_origin,
            self._config.SITE_URL,
            self._config.DEFAULT_SITE_URL,
            self._config.RESET_PASSWORD_PATH,
        )

        try:
            self._backend.request_password_reset(email, redirect_to)
        except BackendCallError as exc:
            self._log_event(
                "PASSWORD_RESET_REQUEST_FAILED",
                "Password reset request failed: %s",
                exc.message,
                level=logging.WARNING,
                email=email,
            )
            return AuthResult.failure(AuthErrorCode.RESET_REQUEST_FAILED)

        self._activity.record(
            self._current_admin_id(),
            ActivityType.PASSWORD_RESET,
            f"Password reset requested for: {email}",
        )
        self._log_event(
            "PASSWORD_RESET_REQUESTED",
            "Password reset requested (redirect: %s)",
            redirect_to,
            email=email,
        )
        return AuthResult(
            success=True,
            message=(
                "If an account exists for that address, a password reset "
                "link has been sent. Check your email."
            ),
        )

    # ------------------------------------------------------------------
    # Recovery phase
    # ------------------------------------------------------------------

    def verify_recovery_link(self, url: str) -> AuthResult:
        """Establish a recovery session from the link in *url*.

        Exactly one recovery method is attempted.  On success
        ``redirect_url`` holds *url* without its query string and
        fragment; the surface should replace the visible URL with it.
        """
        link = parse_recovery_link(url)
        if link is None:
            self._log_event(
                "RECOVERY_LINK_INVALID",
                "No recovery parameters found in reset URL.",
                level=logging.WARNING,
            )
            return AuthResult.failure(AuthErrorCode.INVALID_RECOVERY_LINK)

        try:
            self._establish_recovery_session(link)
        except BackendCallError as exc:
            self._log_event(
                "RECOVERY_LINK_REJECTED",
                "Recovery via %s rejected: %s",
                link.method,
                exc.message,
                level=logging.WARNING,
                method=link.method,
            )
            return AuthResult.failure(AuthErrorCode.EXPIRED_OR_INVALID_LINK)

        self._log_event(
            "RECOVERY_SESSION",
            "Recovery session established via %s",
            link.method,
            method=link.method,
        )
        return AuthResult(
            success=True,
            redirect_url=link.clean_url,
            message="Reset link verified. Choose a new password.",
        )

    def _establish_recovery_session(self, link: RecoveryLink) -> None:
        if link.method == RecoveryMethod.CODE_EXCHANGE and link.code:
            self._backend.exchange_code_for_session(link.code)
        elif (
            link.method == RecoveryMethod.TOKEN_PAIR
            and link.access_token
            and link.refresh_token
        ):
            self._backend.establish_session_from_tokens(link.access_token, link.refresh_token)
        elif link.method == RecoveryMethod.OTP_EMAIL:
            self._backend.verify_one_time_token(
                _RECOVERY_OTP_TYPE, token=link.token, email=link.email,
            )
        elif link.method == RecoveryMethod.OTP_TOKEN_HASH:
            self._backend.verify_one_time_token(
                _RECOVERY_OTP_TYPE, token_hash=link.token_hash,
            )
        else:
            raise BackendCallError(
                f"Recovery link is missing fields for {link.method}.",
                operation="verify_recovery_link",
            )

    # ------------------------------------------------------------------
    # Update phase
    # ------------------------------------------------------------------

    def update_password(self, new_password: str, confirm_password: str) -> AuthResult:
        """Set a new password on the active recovery session.

        Both local checks run before any backend call: a mismatch is
        reported before a too-short password.
        """
        if new_password != confirm_password:
            return AuthResult.failure(AuthErrorCode.PASSWORD_MISMATCH)

        check = AuthService.validate_password(new_password, self._config.MIN_PASSWORD_LENGTH)
        if not check.is_valid:
            return AuthResult.failure(AuthErrorCode.PASSWORD_TOO_SHORT, check.error_message)

        try:
            self._backend.update_password(new_password)
        except BackendCallError as exc:
            if exc.mentions(_EXPIRY_MARKER):
                result = AuthResult.failure(AuthErrorCode.LINK_EXPIRED)
            else:
                result = AuthResult.failure(
                    AuthErrorCode.UPDATE_FAILED,
                    exc.message or AUTH_ERROR_MESSAGES[AuthErrorCode.UPDATE_FAILED],
                )
            self._log_event(
                "PASSWORD_UPDATE_FAILED",
                "Password update failed: %s",
                exc.message,
                level=logging.WARNING,
                error_code=result.error_code,
            )
            return result

        admin_id = self._current_admin_id()
        self._activity.record(
            admin_id,
            ActivityType.PASSWORD_RESET,
            "Password successfully reset",
        )
        self._log_event("PASSWORD_RESET", "Password updated.", user_id=admin_id)
        return AuthResult(
            success=True,
            message="Password updated successfully. Redirecting to sign in...",
            redirect_url=self._config.SIGN_IN_PATH,
            redirect_delay_s=self._config.RESET_REDIRECT_DELAY_S,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _current_admin_id(self) -> Optional[str]:
        """Id of the signed-in identity, from the store or the backend session."""
        identity = self._session.current_identity
        if identity is not None:
            return identity.id
        try:
            identity = self._backend.current_session()
        except BackendCallError as exc:
            self._logger.debug("No backend session for activity attribution: %s", exc.message)
            return None
        return identity.id if identity is not None else None
