"""Shared utility functions and models for the Admin Console.

Convenience re-exports so consumers can import directly from
``admin_console.utils`` while full module paths remain supported.
"""

from admin_console.utils.audit import AuditEvent, log_audit_event
from admin_console.utils.recovery_link import parse_recovery_link
from admin_console.utils.urls import (
    clean_url,
    is_local_origin,
    join_url,
    oauth_redirect_url,
    reset_redirect_url,
)

__all__ = [
    "AuditEvent",
    "clean_url",
    "is_local_origin",
    "join_url",
    "log_audit_event",
    "oauth_redirect_url",
    "parse_recovery_link",
    "reset_redirect_url",
]
