"""
Profile Repository.

Handles all access to the ``profiles`` table.  Row-level security on
the backend decides which rows the anon key can see; the pre-auth
lookup in the sign-in workflow relies on ``id, email, role`` being
readable before a session exists.
"""

from __future__ import annotations

from typing import Optional

from admin_console.models.enums import CONSOLE_ROLES
from admin_console.models.profile import Profile, ProfileCreate, ProfileSummary
from admin_console.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository):
    """Data access layer for Profile entities.

    There is no ``delete()``: profiles are never removed by the console.
    """

    TABLE = "profiles"

    def find_by_email(self, email: str) -> Optional[ProfileSummary]:
        """Pre-authentication lookup of ``id, email, role`` by email.

        Args:
            email: Normalised (trimmed, lower-cased) email address.

        Returns:
            The summary if a row matches, or ``None``.
        """
        operation = "find_by_email (profiles)"
        data = self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("id, email, role")
                .eq("email", email)
                .maybe_single()
                .execute()
            ),
            operation_name=operation,
        )
        if not data:
            return None
        return self._parse(ProfileSummary, data, operation_name=operation)

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        """Fetch the full profile for *user_id*, or ``None`` if not visible."""
        operation = "get_by_id (profiles)"
        data = self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            ),
            operation_name=operation,
        )
        if not data:
            return None
        return self._parse(Profile, data, operation_name=operation)

    def insert(self, profile: ProfileCreate) -> None:
        """Insert the profile row created at sign-up."""
        self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .insert(profile.model_dump(mode="json"))
                .execute()
            ),
            operation_name="insert (profiles)",
        )
        self._logger.info("Profile created: %s (%s)", profile.email, profile.role)

    def list_admins(self) -> list[Profile]:
        """All console users, newest first."""
        operation = "list_admins (profiles)"
        data = self._execute(
            lambda: (
                self.supabase.table(self.TABLE)
                .select("*")
                .in_("role", sorted(CONSOLE_ROLES))
                .order("created_at", desc=True)
                .execute()
            ),
            operation_name=operation,
        )
        return self._parse_rows(Profile, data, operation_name=operation)
