"""
Service Layer Data Transfer Objects.

Result envelope for non-auth service calls (dashboards).
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

__all__ = ["ServiceResult"]


class ServiceResult(BaseModel, Generic[T]):
    """Uniform result envelope for dashboard operations.

    ``status_code`` follows HTTP semantics so that a web surface can
    pass it straight through: 401 not signed in, 403 wrong role,
    502 backend failure.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
