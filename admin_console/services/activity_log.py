"""
Activity Log Service.

Best-effort append to ``admin_activity_logs``.  A failed insert is
logged and reported through the return value; it never propagates to
the workflow that triggered it.
"""

from __future__ import annotations

from typing import Optional

from admin_console.config import AppConfig
from admin_console.logger import StructuredLogger
from admin_console.models.activity_log import ActivityLogCreate
from admin_console.models.enums import ActivityType
from admin_console.repositories.activity_log_repository import ActivityLogRepository
from admin_console.services.base_service import BaseService
from admin_console.utils.audit import log_audit_event


class ActivityLogService(BaseService):
    """Appends activity entries and mirrors each one as an audit line."""

    def __init__(
        self,
        repo: ActivityLogRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo: ActivityLogRepository = repo
        self._user_agent: str = config.CLIENT_USER_AGENT

    def record(
        self,
        admin_id: Optional[str],
        activity_type: ActivityType,
        description: str,
    ) -> bool:
        """Append one entry.

        Returns
        -------
        bool
            ``True`` if the backend stored the entry.
        """
        entry = ActivityLogCreate(
            admin_id=admin_id,
            activity_type=activity_type,
            description=description,
            ip_address="",
            user_agent=self._user_agent,
        )
        persisted = False
        try:
            self._repo.insert(entry)
            persisted = True
        except Exception as exc:
            self._logger.warning(
                "Activity log write failed (%s): %s",
                activity_type,
                exc,
                extra={"event": "ACTIVITY_LOG_FAILED"},
            )

        log_audit_event(
            self._logger,
            activity_type=activity_type,
            admin_id=admin_id,
            description=description,
            details={"persisted": persisted},
        )
        return persisted
