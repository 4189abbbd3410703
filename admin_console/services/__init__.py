"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
``SessionStore`` for user context.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the surface (desktop or web) can consume
without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from admin_console.auth import SessionStore
from admin_console.backend import SupabaseBackend
from admin_console.config import AppConfig
from admin_console.logger import get_logger
from admin_console.repositories.activity_log_repository import ActivityLogRepository
from admin_console.repositories.profile_repository import ProfileRepository
from admin_console.services.activity_log import ActivityLogService
from admin_console.services.auth_service import AuthService
from admin_console.services.dashboard import DashboardService
from admin_console.services.password_reset import PasswordResetService
from admin_console.services.session_sync import SessionSyncService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    auth_service: AuthService
    password_reset_service: PasswordResetService
    session_sync_service: SessionSyncService
    activity_log_service: ActivityLogService
    dashboard_service: DashboardService


def create_services(
    backend: SupabaseBackend,
    config: AppConfig,
    session: SessionStore,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application root calls this once at startup.

    Args:
        backend: Supabase facade (may be unconfigured; calls then fail
            with a classified error).
        config: Application configuration.
        session: The application's session state holder.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("admin_console.services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    profile_repo = ProfileRepository(backend=backend, logger=logger)
    activity_repo = ActivityLogRepository(backend=backend, logger=logger)

    # ------------------------------------------------------------------
    # 2. Leaf services
    # ------------------------------------------------------------------
    activity_log_service = ActivityLogService(
        repo=activity_repo,
        config=config,
        logger=get_logger("admin_console.audit"),
    )
    session_sync_service = SessionSyncService(
        backend=backend,
        session=session,
        profile_repo=profile_repo,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 3. Workflow services (depend on the activity log)
    # ------------------------------------------------------------------
    auth_service = AuthService(
        backend=backend,
        session=session,
        profile_repo=profile_repo,
        activity_log=activity_log_service,
        config=config,
        logger=get_logger("admin_console.auth"),
    )
    password_reset_service = PasswordResetService(
        backend=backend,
        session=session,
        activity_log=activity_log_service,
        config=config,
        logger=get_logger("admin_console.auth"),
    )
    dashboard_service = DashboardService(
        session=session,
        profile_repo=profile_repo,
        activity_repo=activity_repo,
        activity_log=activity_log_service,
        config=config,
        logger=logger,
    )

    return ServiceContainer(
        auth_service=auth_service,
        password_reset_service=password_reset_service,
        session_sync_service=session_sync_service,
        activity_log_service=activity_log_service,
        dashboard_service=dashboard_service,
    )
