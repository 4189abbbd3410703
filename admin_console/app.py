"""
Application Root.

Owns the single ``SessionStore`` and the service container, and decides
which screen a surface should show.  A desktop window or a web handler
plugs in here; there is no widget code in this package.

Usage::

    console = create_app()
    console.start()
    view = console.current_view("/")
    result = console.services["auth_service"].sign_in(email, password)
"""

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import urlsplit

from admin_console.auth import SessionStore, SessionSubscriber
from admin_console.backend import SupabaseBackend
from admin_console.config import AppConfig, get_config
from admin_console.logger import StructuredLogger, get_logger
from admin_console.models.enums import UserRole, ViewName
from admin_console.models.identity import SessionState
from admin_console.services import ServiceContainer, create_services


def _normalize_path(path: str) -> str:
    return (urlsplit(path).path or "/").rstrip("/") or "/"


def resolve_view(
    state: SessionState,
    path: str,
    reset_password_path: str = "/reset-password",
) -> ViewName:
    """Pick the screen for *state* at *path*.

    The reset page is reachable regardless of session, since a recovery
    link establishes its own session.
    """
    if state.is_loading:
        return ViewName.LOADING
    if _normalize_path(path) == _normalize_path(reset_password_path):
        return ViewName.RESET_PASSWORD
    if not state.is_authenticated or state.profile is None:
        return ViewName.AUTH
    if state.profile.role == UserRole.SUPERADMIN:
        return ViewName.SUPERADMIN_DASHBOARD
    return ViewName.ADMIN_DASHBOARD


class AdminConsole:
    """Composition root holding the session store and all services.

    Parameters
    ----------
    config:
        Application configuration.
    backend:
        Supabase facade shared by every repository and service.
    session:
        The process-wide session state holder.
    services:
        Wired service container.
    logger:
        Logger for lifecycle events.
    """

    def __init__(
        self,
        config: AppConfig,
        backend: SupabaseBackend,
        session: SessionStore,
        services: ServiceContainer,
        logger: StructuredLogger,
    ) -> None:
        self.config: AppConfig = config
        self.backend: SupabaseBackend = backend
        self.session: SessionStore = session
        self.services: ServiceContainer = services
        self._logger: StructuredLogger = logger
        self._started: bool = False

    def start(self) -> SessionState:
        """Resolve the initial session; idempotent."""
        if not self._started:
            self._started = True
            self.services["session_sync_service"].initialize()
            self._logger.info(
                "Admin console started (%s).", self.session.state.status,
            )
        return self.session.state

    def stop(self) -> None:
        """Cancel the backend subscription."""
        if self._started:
            self.services["session_sync_service"].shutdown()
            self._started = False
            self._logger.info("Admin console stopped.")

    def current_view(self, path: str) -> ViewName:
        return resolve_view(self.session.state, path, self.config.RESET_PASSWORD_PATH)

    def subscribe(self, callback: SessionSubscriber) -> Callable[[], None]:
        """Shortcut for ``session.subscribe``."""
        return self.session.subscribe(callback)


def create_app(
    config: Optional[AppConfig] = None,
    backend: Optional[SupabaseBackend] = None,
) -> AdminConsole:
    """Build an :class:`AdminConsole` with every dependency wired.

    Args:
        config: Defaults to the ``get_config()`` singleton.
        backend: Defaults to a ``SupabaseBackend`` built from *config*.
    """
    config = config or get_config()
    if backend is None:
        backend = SupabaseBackend(
            supabase_url=config.SUPABASE_URL,
            supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
            logger=get_logger("admin_console.backend"),
        )
    session = SessionStore(logger=get_logger("admin_console.session"))
    services = create_services(backend=backend, config=config, session=session)
    return AdminConsole(
        config=config,
        backend=backend,
        session=session,
        services=services,
        logger=get_logger("admin_console"),
    )
