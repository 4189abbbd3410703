"""Global test configuration for the Admin Console."""

import os
from unittest.mock import MagicMock

import pytest

from admin_console.auth import SessionStore
from admin_console.backend import SupabaseBackend
from admin_console.config import AppConfig, reset_config
from admin_console.logger import StructuredLogger
from admin_console.models.enums import UserRole
from admin_console.models.identity import Identity
from admin_console.models.profile import Profile, ProfileSummary
from admin_console.repositories.activity_log_repository import ActivityLogRepository
from admin_console.repositories.profile_repository import ProfileRepository
from admin_console.services.activity_log import ActivityLogService


@pytest.fixture(autouse=True, scope="session")
def _set_test_env_vars(tmp_path_factory):
    """Set dummy environment variables for AppConfig validation.

    Tests never reach the network: every backend is a MagicMock.
    """
    log_dir = tmp_path_factory.mktemp("logs")
    defaults = {
        "SUPABASE_URL": "https://test.supabase.co",
        "SUPABASE_ANON_KEY": "test-anon-key",
        "SITE_URL": "https://console.example.com",
        "LOG_FILE": str(log_dir / "admin_console.log"),
    }
    originals = {key: os.environ.get(key) for key in defaults}
    os.environ.update(defaults)
    reset_config()

    yield

    for key, original in originals.items():
        if original is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original
    reset_config()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="admin_console.tests")


@pytest.fixture
def session(logger) -> SessionStore:
    return SessionStore(logger=logger)


@pytest.fixture
def backend():
    """A SupabaseBackend double; every method is a MagicMock."""
    mock = MagicMock(spec=SupabaseBackend)
    mock.current_session.return_value = None
    return mock


@pytest.fixture
def profile_repo():
    return MagicMock(spec=ProfileRepository)


@pytest.fixture
def activity_repo():
    return MagicMock(spec=ActivityLogRepository)


@pytest.fixture
def activity_log():
    mock = MagicMock(spec=ActivityLogService)
    mock.record.return_value = True
    return mock


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------

@pytest.fixture
def admin_identity() -> Identity:
    return Identity(
        id="user-b",
        email="b@x.com",
        access_token="access-b",
        refresh_token="refresh-b",
    )


@pytest.fixture
def admin_summary() -> ProfileSummary:
    return ProfileSummary(id="user-b", email="b@x.com", role="admin")


@pytest.fixture
def admin_profile() -> Profile:
    return Profile(id="user-b", email="b@x.com", role=UserRole.ADMIN, full_name="Bea Admin")


@pytest.fixture
def superadmin_identity() -> Identity:
    return Identity(id="user-s", email="s@x.com")


@pytest.fixture
def superadmin_profile() -> Profile:
    return Profile(
        id="user-s", email="s@x.com", role=UserRole.SUPERADMIN, full_name="Sam Super",
    )
