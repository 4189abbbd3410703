"""
Authentication Pipeline Models.

Pydantic models and enumerations for the auth request/response
contracts between the auth services and whatever surface drives them.

Every auth operation returns a structured, inspectable ``AuthResult``
rather than raising; the surface keys its inline error banner off
``error_message`` and decides follow-up navigation from ``error_code``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from admin_console.models.enums import RecoveryMethod
from admin_console.models.identity import Identity
from admin_console.models.profile import Profile


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Closed set of authentication failure categories."""

    # Sign-in
    NOT_REGISTERED = "not_registered"
    INSUFFICIENT_PRIVILEGE = "insufficient_privilege"
    INVALID_PASSWORD = "invalid_password"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    VERIFICATION_FAILED = "verification_failed"
    PROFILE_LOAD_FAILED = "profile_load_failed"
    ACCESS_DENIED = "access_denied"
    BACKEND_ERROR = "backend_error"

    # Sign-up
    SIGN_UP_FAILED = "sign_up_failed"
    PROFILE_CREATION_FAILED = "profile_creation_failed"

    # Password reset
    RESET_REQUEST_FAILED = "reset_request_failed"
    INVALID_RECOVERY_LINK = "invalid_recovery_link"
    EXPIRED_OR_INVALID_LINK = "expired_or_invalid_link"
    PASSWORD_MISMATCH = "password_mismatch"
    PASSWORD_TOO_SHORT = "password_too_short"
    LINK_EXPIRED = "link_expired"
    UPDATE_FAILED = "update_failed"

    # Sign-out
    SIGN_OUT_FAILED = "sign_out_failed"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.NOT_REGISTERED: "User is not registered.",
    AuthErrorCode.INSUFFICIENT_PRIVILEGE: "Access denied. Admin privileges required.",
    AuthErrorCode.INVALID_PASSWORD: "Invalid password.",
    AuthErrorCode.RATE_LIMITED: "Too many requests. Please try again later.",
    AuthErrorCode.AUTH_FAILED: "Authentication failed.",
    AuthErrorCode.VERIFICATION_FAILED: "Authentication verification failed.",
    AuthErrorCode.PROFILE_LOAD_FAILED: "Profile load failed.",
    AuthErrorCode.ACCESS_DENIED: "Database access denied.",
    AuthErrorCode.BACKEND_ERROR: "Database error occurred.",
    AuthErrorCode.SIGN_UP_FAILED: "Sign up failed.",
    AuthErrorCode.PROFILE_CREATION_FAILED: "Failed to create user profile.",
    AuthErrorCode.RESET_REQUEST_FAILED: "Password reset failed.",
    AuthErrorCode.INVALID_RECOVERY_LINK: (
        "Invalid reset link. Make sure you used the latest link sent to "
        "your email and that it has not been altered."
    ),
    AuthErrorCode.EXPIRED_OR_INVALID_LINK: (
        "Invalid or expired reset link. Please request a new password reset."
    ),
    AuthErrorCode.PASSWORD_MISMATCH: "Passwords do not match.",
    AuthErrorCode.PASSWORD_TOO_SHORT: "Password must be at least {min_length} characters.",
    AuthErrorCode.LINK_EXPIRED: (
        "Password reset link has expired. Please request a new one."
    ),
    AuthErrorCode.UPDATE_FAILED: "Failed to update password.",
    AuthErrorCode.SIGN_OUT_FAILED: "Sign out failed.",
}


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check."""

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for every auth workflow.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    message:
        Human-readable success message, when the surface should show one.
    identity:
        The authenticated / newly created identity.
    profile:
        The committed profile after a successful sign-in.
    redirect_url:
        Where the surface should navigate next: the OAuth provider page,
        the cleaned recovery URL, or the sign-in view after a password
        update.
    redirect_delay_s:
        Seconds to wait before following ``redirect_url`` so a success
        message can render.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    message: Optional[str] = None
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    redirect_url: Optional[str] = None
    redirect_delay_s: Optional[float] = None

    model_config = {"from_attributes": True}

    @classmethod
    def failure(
        cls,
        code: AuthErrorCode,
        message: Optional[str] = None,
    ) -> "AuthResult":
        """Build a failed result, defaulting to the code's stock message."""
        return cls(
            success=False,
            error_code=code,
            error_message=message or AUTH_ERROR_MESSAGES[code],
        )


# ---------------------------------------------------------------------------
# Recovery link
# ---------------------------------------------------------------------------

class RecoveryLink(BaseModel):
    """Credentials extracted from a password-recovery URL.

    Exactly the fields needed by ``method`` are populated.
    """

    method: RecoveryMethod
    code: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token: Optional[str] = None
    token_hash: Optional[str] = None
    email: Optional[str] = None
    clean_url: str

    model_config = {"frozen": True}
