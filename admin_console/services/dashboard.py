"""
Dashboard Service.

Read-mostly queries behind the two dashboards:

- admin: the signed-in admin's own recent activity;
- superadmin: every console user, and everyone's recent activity with
  an optional per-admin filter.

Role checks use the guards from :mod:`admin_console.guards`; their
exceptions and backend failures are folded into ``ServiceResult``
status codes (401, 403, 502).
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

from admin_console.auth import SessionStore
from admin_console.backend import BackendCallError
from admin_console.config import AppConfig
from admin_console.guards import AuthenticationError, AuthorizationError, require_role
from admin_console.logger import StructuredLogger
from admin_console.models.activity_log import ActivityLogEntry, ActivityLogWithProfile
from admin_console.models.enums import CONSOLE_ROLES, ActivityType, UserRole
from admin_console.models.profile import Profile
from admin_console.models.service_models import ServiceResult
from admin_console.repositories.activity_log_repository import ActivityLogRepository
from admin_console.repositories.profile_repository import ProfileRepository
from admin_console.services.activity_log import ActivityLogService
from admin_console.services.base_service import BaseService

R = TypeVar("R")


class DashboardService(BaseService):
    """Role-scoped dashboard data."""

    def __init__(
        self,
        session: SessionStore,
        profile_repo: ProfileRepository,
        activity_repo: ActivityLogRepository,
        activity_log: ActivityLogService,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._session: SessionStore = session
        self._profiles: ProfileRepository = profile_repo
        self._activity_repo: ActivityLogRepository = activity_repo
        self._activity: ActivityLogService = activity_log
        self._config: AppConfig = config

    # ------------------------------------------------------------------
    # Admin dashboard
    # ------------------------------------------------------------------

    def recent_activity_for_current_admin(
        self,
        limit: Optional[int] = None,
    ) -> ServiceResult[list[ActivityLogEntry]]:
        """The signed-in admin's own entries, newest first."""
        resolved_limit = limit if limit is not None else self._config.ADMIN_ACTIVITY_LIMIT

        def _query() -> list[ActivityLogEntry]:
            identity = self._session.current_identity
            if identity is None:
                raise AuthenticationError("The session ended before the query ran.")
            return self._activity_repo.list_for_admin(identity.id, resolved_limit)

        return self._guarded("recent_activity_for_current_admin", CONSOLE_ROLES, _query)

    def log_action(self, description: str) -> ServiceResult[bool]:
        """Append an ``action`` entry for the signed-in admin.

        Without a signed-in admin nothing is written.  ``data`` reports
        whether the backend stored the entry.
        """

        def _record() -> bool:
            identity = self._session.current_identity
            if identity is None:
                raise AuthenticationError("The session ended before the entry was written.")
            return self._activity.record(identity.id, ActivityType.ACTION, description)

        return self._guarded("log_action", CONSOLE_ROLES, _record)

    # ------------------------------------------------------------------
    # Superadmin dashboard
    # ------------------------------------------------------------------

    def list_admins(self) -> ServiceResult[list[Profile]]:
        """Every console user, newest first.  Superadmin only."""
        return self._guarded("list_admins", {UserRole.SUPERADMIN}, self._profiles.list_admins)

    def recent_activity(
        self,
        limit: Optional[int] = None,
        admin_id: Optional[str] = None,
    ) -> ServiceResult[list[ActivityLogWithProfile]]:
        """Everyone's entries with their profiles, newest first.  Superadmin only.

        Args:
            limit: Maximum number of entries (defaults to
                ``SUPERADMIN_ACTIVITY_LIMIT``).
            admin_id: Restrict to entries written by this admin.
        """
        resolved_limit = limit if limit is not None else self._config.SUPERADMIN_ACTIVITY_LIMIT
        return self._guarded(
            "recent_activity",
            {UserRole.SUPERADMIN},
            lambda: self._activity_repo.list_recent_with_profiles(resolved_limit, admin_id),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _guarded(
        self,
        operation: str,
        roles: Iterable[str],
        func: Callable[[], R],
    ) -> ServiceResult[R]:
        """Run *func* behind a role guard and wrap the outcome."""
        try:
            data = require_role(self._session, roles)(func)()
        except AuthenticationError as exc:
            self._logger.info("%s refused: not signed in.", operation)
            return ServiceResult(success=False, error=str(exc), status_code=401)
        except AuthorizationError as exc:
            self._logger.warning(
                "%s refused: %s",
                operation,
                exc,
                extra={"event": "ACCESS_DENIED"},
            )
            return ServiceResult(success=False, error=str(exc), status_code=403)
        except BackendCallError as exc:
            self._logger.error("%s failed: %s", operation, exc.message)
            return ServiceResult(success=False, error=exc.message, status_code=502)
        return ServiceResult(success=True, data=data)
