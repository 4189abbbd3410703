"""
Activity Log Repository.

Append and read access for ``admin_activity_logs``.  Entries are never
updated or deleted, so the repository exposes no such methods.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from admin_console.models.activity_log import (
    ActivityLogCreate,
    ActivityLogEntry,
    ActivityLogWithProfile,
)
from admin_console.models.profile import Profile
from admin_console.repositories.base_repository import BaseRepository


class ActivityLogRepository(BaseRepository):
    """Data access layer for activity log entries."""

    TABLE = "admin_activity_logs"

    def insert(self, entry: ActivityLogCreate) -> None:
        """Append *entry*. Raises ``BackendCallError`` on failure."""
        self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .insert(entry.model_dump(mode="json"))
                .execute()
            ),
            operation_name="insert (admin_activity_logs)",
        )

    def list_for_admin(self, admin_id: str, limit: int) -> list[ActivityLogEntry]:
        """Entries written by *admin_id*, newest first."""
        operation = "list_for_admin (admin_activity_logs)"
        data = self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("admin_id", admin_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            ),
            operation_name=operation,
        )
        return self._parse_rows(ActivityLogEntry, data, operation_name=operation)

    def list_recent_with_profiles(
        self,
        limit: int,
        admin_id: Optional[str] = None,
    ) -> list[ActivityLogWithProfile]:
        """Recent entries joined with their admin's profile, newest first.

        Args:
            limit: Maximum number of entries.
            admin_id: When given, only entries written by this admin.
        """
        operation = "list_recent_with_profiles (admin_activity_logs)"

        def _run() -> object:
            query = self.supabase.table(self.TABLE).select("*, profile:profiles(*)")
            if admin_id:
                query = query.eq("admin_id", admin_id)
            return query.order("created_at", desc=True).limit(limit).execute()

        data = self._execute(_run, operation_name=operation)
        rows = self._parse_rows(ActivityLogEntry, data, operation_name=operation)
        raw_rows: list[dict[str, object]] = data if isinstance(data, list) else []

        return [
            ActivityLogWithProfile(
                **entry.model_dump(),
                profile=self._joined_profile(raw.get("profile")),
            )
            for entry, raw in zip(rows, raw_rows)
        ]

    def _joined_profile(self, raw_profile: object) -> Optional[Profile]:
        """Parse the embedded profile; an unparseable one is dropped, not fatal."""
        if not raw_profile:
            return None
        try:
            return Profile.model_validate(raw_profile)
        except ValidationError as exc:
            self._logger.warning(
                "Skipping unparseable joined profile: %d error(s).",
                exc.error_count(),
            )
            return None
