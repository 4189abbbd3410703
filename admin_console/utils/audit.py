"""
Structured Audit Logging Utility.

Every activity-log write is mirrored as a structured JSON audit line so
the trail survives even when the backend insert fails.  Provides a
Pydantic-validated model and a single function for consistent entries.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from admin_console.logger import StructuredLogger

__all__ = ["AuditEvent", "log_audit_event"]

# Flat scalars only; nested structures do not belong in an audit line.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    activity_type: str
    admin_id: Optional[str] = None
    description: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    activity_type: str,
    admin_id: Optional[str],
    description: str,
    details: Optional[dict[str, DetailValue]] = None,
) -> AuditEvent:
    """Log a structured JSON audit event.

    Args:
        logger: The logger instance to write to.
        activity_type: ``login``, ``logout``, ``action`` or
            ``password_reset``.
        admin_id: ID of the acting admin, ``None`` when anonymous.
        description: Human-readable summary of what happened.
        details: Optional additional context (e.g. whether the backend
            insert succeeded).

    Returns:
        The validated event that was logged.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        activity_type=str(activity_type),
        admin_id=admin_id,
        description=description,
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))
    return event
