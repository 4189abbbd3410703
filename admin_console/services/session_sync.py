"""
Session Synchronisation Service.

Keeps the ``SessionStore`` in step with the backend: resolves the
existing session at startup and re-resolves the profile on every
session-change notification (OAuth completion, token refresh, external
sign-out).  Each transition takes a ticket when it starts, so a slow
profile fetch never overwrites the result of a newer notification.
"""

from __future__ import annotations

from typing import Callable, Optional

from admin_console.auth import SessionStore
from admin_console.backend import BackendCallError, SupabaseBackend
from admin_console.logger import StructuredLogger
from admin_console.models.identity import Identity, SessionState
from admin_console.models.profile import Profile
from admin_console.repositories.profile_repository import ProfileRepository
from admin_console.services.base_service import BaseService


class SessionSyncService(BaseService):
    """Startup initialiser and notification handler for the session store."""

    def __init__(
        self,
        backend: SupabaseBackend,
        session: SessionStore,
        profile_repo: ProfileRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._backend: SupabaseBackend = backend
        self._session: SessionStore = session
        self._profiles: ProfileRepository = profile_repo
        self._unsubscribe: Optional[Callable[[], None]] = None

    def initialize(self) -> SessionState:
        """Subscribe to notifications and resolve the existing session.

        Always leaves the store out of ``LOADING``: any backend failure
        resolves to ``ANONYMOUS``.
        """
        if self._unsubscribe is None:
            try:
                self._unsubscribe = self._backend.on_session_change(self.handle_session_change)
            except BackendCallError as exc:
                self._logger.warning(
                    "Session-change subscription unavailable: %s", exc.message,
                )

        ticket = self._session.begin_transition()
        identity: Optional[Identity] = None
        profile: Optional[Profile] = None
        try:
            identity = self._backend.current_session()
        except BackendCallError as exc:
            self._logger.warning("Could not read existing session: %s", exc.message)

        if identity is not None:
            profile = self._resolve_profile(identity)

        self._session.commit(ticket, identity, profile)
        state = self._session.state
        self._log_event(
            "SESSION_INIT",
            "Session initialised: %s",
            state.status,
            user_id=identity.id if identity is not None else None,
        )
        return state

    def handle_session_change(self, event: str, identity: Optional[Identity]) -> bool:
        """Re-resolve the profile for *identity* and commit it.

        Returns ``True`` when the transition was applied, ``False`` when
        a newer transition superseded it while the profile was loading.
        """
        ticket = self._session.begin_transition()
        profile = self._resolve_profile(identity) if identity is not None else None
        applied = self._session.commit(ticket, identity, profile)
        self._log_event(
            "SESSION_CHANGE",
            "Session change %s (%s)",
            event,
            "applied" if applied else "superseded",
            user_id=identity.id if identity is not None else None,
        )
        return applied

    def shutdown(self) -> None:
        """Cancel the session-change subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _resolve_profile(self, identity: Identity) -> Optional[Profile]:
        try:
            return self._profiles.get_by_id(identity.id)
        except BackendCallError as exc:
            self._logger.warning(
                "Profile fetch for %s failed; treating as signed out: %s",
                identity.id,
                exc.message,
            )
            return None
