"""
Profile Models.

Application-level authorisation records stored in the ``profiles``
table, one per Supabase Auth identity.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from admin_console.models.enums import CONSOLE_ROLES, UserRole


class Profile(BaseModel):
    """A console user's profile.

    ``email`` is a denormalised copy of the identity's email and must
    match it.  Profiles are created at sign-up and never deleted.
    """

    id: str  # Supabase UUID, same as the identity id
    email: str
    role: UserRole
    full_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("full_name", mode="before")
    @classmethod
    def _null_name_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class ProfileSummary(BaseModel):
    """Projection used by the pre-authentication lookup.

    ``role`` is left as a plain string so a row with a role outside the
    console roles parses and can be rejected explicitly.  A NULL role
    parses as ``None`` and likewise has no console access.
    """

    id: str
    email: str
    role: Optional[str] = None

    @property
    def has_console_access(self) -> bool:
        return self.role in CONSOLE_ROLES


class ProfileCreate(BaseModel):
    """Row inserted by the sign-up workflow."""

    id: str
    email: str
    full_name: str
    role: UserRole = UserRole.ADMIN
