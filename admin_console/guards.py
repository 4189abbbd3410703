"""
Authentication Guard Decorators.

Factories that produce decorators gating service-layer functions behind
an authenticated session and, optionally, a set of roles.

Usage::

    from admin_console.auth import SessionStore
    from admin_console.guards import require_auth, require_role
    from admin_console.models.enums import UserRole

    store = SessionStore(logger=get_logger("session"))
    superadmin_only = require_role(store, {UserRole.SUPERADMIN})

    @superadmin_only
    def list_admins() -> list[Profile]:
        ...
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Iterable, ParamSpec, TypeVar

from admin_console.auth import SessionStore

P = ParamSpec("P")
R = TypeVar("R")


class AuthenticationError(RuntimeError):
    """Raised when a guarded function is called without an active session."""


class AuthorizationError(RuntimeError):
    """Raised when the signed-in profile lacks the required role."""


def require_auth(session: SessionStore) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that enforces authentication via *session*.

    Args:
        session: The application's ``SessionStore``.

    Returns:
        A decorator suitable for wrapping service-layer callables.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not session.is_authenticated:
                raise AuthenticationError(
                    "Authentication required. Please sign in before "
                    "performing this action."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_role(
    session: SessionStore,
    roles: Iterable[str],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that enforces authentication and one of *roles*."""
    allowed: frozenset[str] = frozenset(str(role) for role in roles)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            state = session.state
            if not state.is_authenticated or state.profile is None:
                raise AuthenticationError(
                    "Authentication required. Please sign in before "
                    "performing this action."
                )
            if str(state.profile.role) not in allowed:
                raise AuthorizationError(
                    f"Role '{state.profile.role}' may not perform this action."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
