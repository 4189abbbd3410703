"""
Data Models Package.

Re-exports all Pydantic models:
    from admin_console.models import Profile, Identity, SessionState
    from admin_console.models import UserRole, ActivityType
"""

from __future__ import annotations

from admin_console.models.activity_log import (
    ActivityLogCreate,
    ActivityLogEntry,
    ActivityLogWithProfile,
)
from admin_console.models.auth_models import (
    AUTH_ERROR_MESSAGES,
    AuthErrorCode,
    AuthResult,
    RecoveryLink,
    ValidationResult,
)
from admin_console.models.enums import (
    CONSOLE_ROLES,
    ActivityType,
    RecoveryMethod,
    SessionStatus,
    UserRole,
    ViewName,
)
from admin_console.models.identity import Identity, SessionState
from admin_console.models.profile import Profile, ProfileCreate, ProfileSummary
from admin_console.models.service_models import ServiceResult

__all__ = [
    "AUTH_ERROR_MESSAGES",
    "CONSOLE_ROLES",
    "ActivityLogCreate",
    "ActivityLogEntry",
    "ActivityLogWithProfile",
    "ActivityType",
    "AuthErrorCode",
    "AuthResult",
    "Identity",
    "Profile",
    "ProfileCreate",
    "ProfileSummary",
    "RecoveryLink",
    "RecoveryMethod",
    "ServiceResult",
    "SessionState",
    "SessionStatus",
    "UserRole",
    "ValidationResult",
    "ViewName",
]
