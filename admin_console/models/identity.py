"""
Identity & Session State Models.

``Identity`` is the backend-issued principal; ``SessionState`` is the
immutable snapshot held by ``SessionStore``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from admin_console.models.enums import SessionStatus
from admin_console.models.profile import Profile


class Identity(BaseModel):
    """A Supabase Auth user plus the session artifact that proves it.

    The tokens are opaque to the console; they are kept only so the
    surface can show session expiry.
    """

    id: str
    email: str
    access_token: Optional[str] = Field(default=None, repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    expires_at: Optional[datetime] = None

    model_config = {"frozen": True}


class SessionState(BaseModel):
    """Snapshot of the console's authentication state.

    ``version`` increases by one for every applied transition so that
    subscribers can tell snapshots apart cheaply.
    """

    status: SessionStatus = SessionStatus.LOADING
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    version: int = 0

    model_config = {"frozen": True}

    @property
    def is_loading(self) -> bool:
        return self.status == SessionStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return (
            self.status == SessionStatus.AUTHENTICATED
            and self.identity is not None
            and self.profile is not None
        )
