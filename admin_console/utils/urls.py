"""
Redirect URL helpers.

Pure functions that compute the URLs handed to the backend for email
links and OAuth callbacks, and strip credentials from recovery URLs.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit, urlunsplit

__all__ = [
    "clean_url",
    "is_local_origin",
    "join_url",
    "oauth_redirect_url",
    "reset_redirect_url",
]


def is_local_origin(origin: Optional[str]) -> bool:
    """``True`` for ``localhost`` and ``127.*`` origins (development)."""
    if not origin:
        return False
    host = urlsplit(origin).hostname or ""
    return host == "localhost" or host.startswith("127.")


def join_url(base: str, path: str) -> str:
    """Join *base* and *path* with exactly one slash between them."""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def reset_redirect_url(
    observed_origin: Optional[str],
    site_url: str,
    default_site_url: str,
    path: str,
) -> str:
    """Where the password-reset email should send the user.

    The origin the surface is actually served from wins over any
    configured base URL: a stale ``SITE_URL`` would otherwise produce a
    link the backend refuses to redirect to.
    """
    base = observed_origin or site_url or default_site_url
    return join_url(base, path)


def oauth_redirect_url(
    observed_origin: Optional[str],
    site_url: str,
    default_site_url: str,
    path: str,
) -> str:
    """Where the OAuth provider should return the user.

    Order: a local development origin, the configured site URL, any
    other observed origin, the default.
    """
    if is_local_origin(observed_origin):
        base = observed_origin
    else:
        base = site_url or observed_origin or default_site_url
    return join_url(base or default_site_url, path)


def clean_url(url: str) -> str:
    """Return *url* with its query string and fragment removed."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
