"""
Repository Layer Package.

Provides data-access abstractions over the Supabase tables.
All table operations flow through repositories; services never touch
``backend.supabase`` directly.

Usage:
    from admin_console.repositories.profile_repository import ProfileRepository
    from admin_console.repositories.activity_log_repository import ActivityLogRepository
"""

from admin_console.repositories.activity_log_repository import ActivityLogRepository
from admin_console.repositories.base_repository import BaseRepository
from admin_console.repositories.profile_repository import ProfileRepository

__all__ = [
    "ActivityLogRepository",
    "BaseRepository",
    "ProfileRepository",
]
