"""
Activity Log Models.

Append-only audit records stored in ``admin_activity_logs``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from admin_console.models.enums import ActivityType
from admin_console.models.profile import Profile


class ActivityLogCreate(BaseModel):
    """Row inserted for a new activity entry.

    ``admin_id`` is ``None`` when the actor is not signed in, e.g. a
    password-reset request made from the sign-in screen.
    """

    admin_id: Optional[str] = None
    activity_type: ActivityType
    description: str
    ip_address: str = ""
    user_agent: str = ""


class ActivityLogEntry(BaseModel):
    """A stored activity entry.  Never mutated or deleted."""

    id: Union[int, str]  # bigint or uuid depending on the table definition
    admin_id: Optional[str] = None
    activity_type: ActivityType
    description: str = ""
    ip_address: str = ""
    user_agent: str = ""
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("description", "ip_address", "user_agent", mode="before")
    @classmethod
    def _null_text_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class ActivityLogWithProfile(ActivityLogEntry):
    """An activity entry joined with its admin's profile.

    ``profile`` is ``None`` for anonymous entries or when the profile
    row is not visible to the reader.
    """

    profile: Optional[Profile] = Field(default=None)
