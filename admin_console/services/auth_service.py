"""
Authentication Service.

Single orchestrator for the credential workflows of the console:
sign-in, sign-up, OAuth sign-in, and sign-out.

Sits between the surface (desktop or web) and the Supabase facade so
that forms remain thin handlers.  All methods return typed
``AuthResult`` or ``ValidationResult`` models; the surface never
inspects raw exceptions.

Sign-in is a strictly ordered sequence that short-circuits on the first
failure::

    1. profile lookup by email      NOT_REGISTERED / ACCESS_DENIED / BACKEND_ERROR
    2. role check                   INSUFFICIENT_PRIVILEGE
    3. password authentication      INVALID_PASSWORD / RATE_LIMITED / AUTH_FAILED
    4. email consistency check      VERIFICATION_FAILED
    5. profile re-fetch by id       PROFILE_LOAD_FAILED
    6. commit + ``login`` activity entry

Any failure from step 3 onwards issues exactly one cleanup sign-out
before the result is returned.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from admin_console.auth import SessionStore
from admin_console.backend import (
    BackendCallError,
    MalformedResponseError,
    SupabaseBackend,
)
from admin_console.config import AppConfig
from admin_console.logger import StructuredLogger
from admin_console.models.auth_models import (
    AUTH_ERROR_MESSAGES,
    AuthErrorCode,
    AuthResult,
    ValidationResult,
)
from admin_console.models.enums import ActivityType
from admin_console.models.identity import Identity
from admin_console.models.profile import ProfileCreate
from admin_console.repositories.profile_repository import ProfileRepository
from admin_console.services.activity_log import ActivityLogService
from admin_console.services.base_service import BaseService
from admin_console.utils.urls import oauth_redirect_url


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

# C0 controls, DEL and C1 controls.
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_INVALID_CREDENTIALS_MESSAGE = "Invalid login credentials"
_INVALID_CREDENTIALS_CODE = "invalid_credentials"
_RATE_LIMIT_STATUS = 429
_RATE_LIMIT_CODE = "over_request_rate_limit"
_RLS_VIOLATION_MESSAGE = "row-level security"
_RLS_VIOLATION_CODE = "42501"


def is_rls_violation(exc: BackendCallError) -> bool:
    """``True`` when a table error is a row-level-security rejection."""
    return exc.code == _RLS_VIOLATION_CODE or exc.mentions(_RLS_VIOLATION_MESSAGE)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AuthService(BaseService):
    """Centralised credential service.

    Receives all infrastructure dependencies via ``__init__`` and
    exposes pure request → result methods for every auth flow.

    Parameters
    ----------
    backend:
        Supabase facade.
    session:
        The application's session state holder.
    profile_repo:
        Access to the ``profiles`` table.
    activity_log:
        Best-effort activity entry writer.
    config:
        Application configuration (redirect targets, password policy).
    logger:
        Structured JSON logger for audit-grade logging.
    """

    def __init__(
        self,
        backend: SupabaseBackend,
        session: SessionStore,
        profile_repo: ProfileRepository,
        activity_log: ActivityLogService,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._backend: SupabaseBackend = backend
        self._session: SessionStore = session
        self._profiles: ProfileRepository = profile_repo
        self._activity: ActivityLogService = activity_log
        self._config: AppConfig = config

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex.

        Parameters
        ----------
        email:
            The raw email string to validate.

        Returns
        -------
        ValidationResult
            ``is_valid=True`` if the email matches, otherwise a
            human-readable ``error_message``.
        """
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                error_message="Please enter a valid email address.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str, min_length: int) -> ValidationResult:
        """Enforce the minimum password length."""
        if len(password) < min_length:
            return ValidationResult(
                is_valid=False,
                error_message=AUTH_ERROR_MESSAGES[AuthErrorCode.PASSWORD_TOO_SHORT].format(
                    min_length=min_length,
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str, field_label: str = "Full name") -> ValidationResult:
        """Validate a display name.

        Rejects control characters (including newlines and tabs) so the
        name cannot corrupt log lines or the admin list.
        """
        stripped = name.strip()
        if not stripped:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} is required.",
            )
        if _CONTROL_CHAR_RE.search(stripped):
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"{field_label} contains invalid characters. "
                    "Only printable characters are allowed."
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    # ==================================================================
    # Sign-in
    # ==================================================================

    def sign_in(self, email: str, password: str) -> AuthResult:
        """Authenticate an admin with email and password.

        Parameters
        ----------
        email:
            The raw email entered by the user.
        password:
            The raw password entered by the user.

        Returns
        -------
        AuthResult
            On success carries the identity and the committed profile.
        """
        email = self.normalize_email(email)

        # --- 1. Pre-authentication profile lookup ---
        try:
            summary = self._profiles.find_by_email(email)
        except BackendCallError as exc:
            code = (
                AuthErrorCode.ACCESS_DENIED
                if is_rls_violation(exc)
                else AuthErrorCode.BACKEND_ERROR
            )
            return self._sign_in_failed(email, AuthResult.failure(code), detail=exc.message)

        if summary is None:
            return self._sign_in_failed(email, AuthResult.failure(AuthErrorCode.NOT_REGISTERED))

        # --- 2. Role check, before any password is verified ---
        if not summary.has_console_access:
            return self._sign_in_failed(
                email,
                AuthResult.failure(AuthErrorCode.INSUFFICIENT_PRIVILEGE),
                detail=f"role={summary.role}",
            )

        # --- 3. Password authentication ---
        try:
            identity = self._backend.password_sign_in(email, password)
        except MalformedResponseError as exc:
            self._cleanup_sign_out(None)
            return self._sign_in_failed(
                email, AuthResult.failure(AuthErrorCode.BACKEND_ERROR), detail=exc.message,
            )
        except BackendCallError as exc:
            self._cleanup_sign_out(None)
            return self._sign_in_failed(
                email, self._classify_password_error(exc), detail=exc.message,
            )

        # --- 4. The authenticated identity must be the profile we checked ---
        if self.normalize_email(identity.email) != self.normalize_email(summary.email):
            self._cleanup_sign_out(identity)
            return self._sign_in_failed(
                email, AuthResult.failure(AuthErrorCode.VERIFICATION_FAILED),
            )

        # --- 5. Authenticated re-fetch of the full profile ---
        try:
            profile = self._profiles.get_by_id(identity.id)
        except BackendCallError as exc:
            self._logger.warning("Profile re-fetch failed for %s: %s", identity.id, exc.message)
            profile = None
        if profile is None:
            self._cleanup_sign_out(identity)
            return self._sign_in_failed(
                email, AuthResult.failure(AuthErrorCode.PROFILE_LOAD_FAILED),
            )

        # --- 6. Commit ---
        self._session.set_authenticated(identity, profile)
        self._activity.record(
            identity.id,
            ActivityType.LOGIN,
            f"Admin {email} logged in successfully",
        )
        self._log_event(
            "LOGIN",
            "Admin signed in: %s (role: %s)",
            email,
            profile.role,
            email=email,
            user_id=identity.id,
        )
        return AuthResult(success=True, identity=identity, profile=profile)

    @staticmethod
    def _classify_password_error(exc: BackendCallError) -> AuthResult:
        """Map a password-authentication failure onto the error taxonomy."""
        if exc.code == _INVALID_CREDENTIALS_CODE or exc.mentions(_INVALID_CREDENTIALS_MESSAGE):
            return AuthResult.failure(AuthErrorCode.INVALID_PASSWORD)
        if exc.status == _RATE_LIMIT_STATUS or exc.code == _RATE_LIMIT_CODE:
            return AuthResult.failure(AuthErrorCode.RATE_LIMITED)
        return AuthResult.failure(AuthErrorCode.AUTH_FAILED, exc.message or None)

    def _cleanup_sign_out(self, identity: Optional[Identity]) -> None:
        """Single best-effort sign-out after a failure at or after step 3."""
        try:
            self._backend.sign_out()
        except BackendCallError as exc:
            self._logger.warning(
                "Cleanup sign-out failed: %s",
                exc.message,
                extra={"event": "CLEANUP_SIGN_OUT_FAILED"},
            )

        # A session-change notification may already have committed this identity.
        current = self._session.current_identity
        if identity is not None and current is not None and current.id == identity.id:
            self._session.clear()

    def _sign_in_failed(
        self,
        email: str,
        result: AuthResult,
        detail: Optional[str] = None,
    ) -> AuthResult:
        self._log_event(
            "LOGIN_FAILED",
            "Sign-in failed for %s: %s",
            email,
            result.error_code,
            level=logging.WARNING,
            email=email,
            error_code=result.error_code,
            detail=detail,
        )
        return result

    # ==================================================================
    # Sign-up
    # ==================================================================

    def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        """Create an identity and its ``admin`` profile.

        Sign-up never grants ``superadmin``.  If the profile insert
        fails the identity is left in place and ``PROFILE_CREATION_FAILED``
        is returned; reconciling it is an operator decision.
        """
        email = self.normalize_email(email)
        full_name = full_name.strip()

        for check in (
            self.validate_email(email),
            self.validate_name(full_name),
            self.validate_password(password, self._config.MIN_PASSWORD_LENGTH),
        ):
            if not check.is_valid:
                return AuthResult.failure(AuthErrorCode.SIGN_UP_FAILED, check.error_message)

        try:
            identity = self._backend.create_account(
                email, password, {"full_name": full_name},
            )
        except MalformedResponseError as exc:
            self._logger.error("Sign-up returned a malformed response: %s", exc.message)
            return AuthResult.failure(AuthErrorCode.BACKEND_ERROR)
        except BackendCallError as exc:
            self._log_event(
                "REGISTER_FAILED",
                "Sign-up rejected for %s: %s",
                email,
                exc.message,
                level=logging.WARNING,
                email=email,
            )
            return AuthResult.failure(AuthErrorCode.SIGN_UP_FAILED, exc.message or None)

        try:
            self._profiles.insert(
                ProfileCreate(id=identity.id, email=email, full_name=full_name)
            )
        except BackendCallError as exc:
            self._log_event(
                "PROFILE_CREATION_FAILED",
                "Identity %s created but profile insert failed: %s",
                identity.id,
                exc.message,
                level=logging.ERROR,
                email=email,
                user_id=identity.id,
            )
            return AuthResult.failure(AuthErrorCode.PROFILE_CREATION_FAILED)

        self._activity.record(
            identity.id,
            ActivityType.ACTION,
            f"New admin account created: {email}",
        )
        self._log_event(
            "REGISTER",
            "Admin account created: %s",
            email,
            email=email,
            user_id=identity.id,
        )
        return AuthResult(
            success=True,
            identity=identity,
            message="Account created. Check your email to confirm it, then sign in.",
        )

    # ==================================================================
    # OAuth
    # ==================================================================

    def sign_in_with_oauth(
        self,
        provider: Optional[str] = None,
        observed_origin: Optional[str] = None,
    ) -> AuthResult:
        """Start an OAuth sign-in and return the provider URL to open.

        Completion arrives later as a session-change notification.
        """
        provider = provider or self._config.OAUTH_PROVIDER
        redirect_to = oauth_redirect_url(
            observed_origin,
            self._config.SITE_URL,
            self._config.DEFAULT_SITE_URL,
            self._config.OAUTH_CALLBACK_PATH,
        )
        try:
            provider_url = self._backend.oauth_sign_in(provider, redirect_to)
        except BackendCallError as exc:
            self._log_event(
                "OAUTH_FAILED",
                "OAuth sign-in with %s failed: %s",
                provider,
                exc.message,
                level=logging.WARNING,
            )
            return AuthResult.failure(AuthErrorCode.AUTH_FAILED, exc.message or None)

        self._log_event("OAUTH_START", "OAuth sign-in started with %s", provider)
        return AuthResult(success=True, redirect_url=provider_url)

    # ==================================================================
    # Sign-out
    # ==================================================================

    def sign_out(self) -> AuthResult:
        """Sign out locally first, then remotely with one retry.

        The session store is cleared in every case, so the surface
        never stays stuck on a dashboard after a failed remote sign-out.
        """
        identity = self._session.current_identity
        if identity is None:
            try:
                identity = self._backend.current_session()
            except BackendCallError as exc:
                self._logger.warning("Could not read session before sign-out: %s", exc.message)

        email = identity.email if identity is not None else "unknown"
        self._activity.record(
            identity.id if identity is not None else None,
            ActivityType.LOGOUT,
            f"Admin {email} logged out",
        )

        self._session.clear()

        try:
            self._backend.sign_out()
        except BackendCallError as first_exc:
            self._logger.warning("Sign-out failed, retrying once: %s", first_exc.message)
            try:
                self._backend.sign_out()
            except BackendCallError as second_exc:
                self._log_event(
                    "LOGOUT_FAILED",
                    "Sign-out failed twice for %s: %s",
                    email,
                    second_exc.message,
                    level=logging.ERROR,
                    email=email,
                )
                return AuthResult.failure(AuthErrorCode.SIGN_OUT_FAILED)

        self._log_event("LOGOUT", "Admin signed out: %s", email, email=email)
        return AuthResult(success=True, message="Signed out.")
