"""
Shared Enumerations for Admin Console Models.

StrEnum values compare equal to their string equivalents, so rows read
straight from Supabase (``"admin"``) compare equal to ``UserRole.ADMIN``.
"""

from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    """Roles that may use the console.

    Any other value found in ``profiles.role`` is treated as a user
    without console privileges.
    """

    ADMIN = "admin"
    SUPERADMIN = "superadmin"


CONSOLE_ROLES: frozenset[str] = frozenset(role.value for role in UserRole)


class ActivityType(StrEnum):
    """Kinds of entries in ``admin_activity_logs``."""

    LOGIN = "login"
    LOGOUT = "logout"
    ACTION = "action"
    PASSWORD_RESET = "password_reset"


class SessionStatus(StrEnum):
    """Lifecycle states of the session state holder."""

    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class ViewName(StrEnum):
    """Screens a surface can render."""

    LOADING = "loading"
    AUTH = "auth"
    RESET_PASSWORD = "reset_password"
    ADMIN_DASHBOARD = "admin_dashboard"
    SUPERADMIN_DASHBOARD = "superadmin_dashboard"


class RecoveryMethod(StrEnum):
    """How a password-recovery link establishes its session."""

    CODE_EXCHANGE = "code_exchange"
    TOKEN_PAIR = "token_pair"
    OTP_EMAIL = "otp_email"
    OTP_TOKEN_HASH = "otp_token_hash"
