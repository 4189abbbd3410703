"""
Recovery link parser.

A password-recovery link can reach the reset page in several shapes
depending on how the backend project is configured.  This module picks
exactly one, in priority order:

1. ``?code=`` (PKCE): exchange the code for a session.
2. ``type=recovery`` with ``access_token`` and ``refresh_token``
   (usually in the fragment): install the token pair.
3. ``token`` with ``email``: verify a recovery one-time token.
4. ``token_hash`` alone: verify a recovery one-time token by hash.

For the token pair the fragment wins over the query string; for the
remaining one-time-token fields the query string wins.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, urlsplit

from admin_console.models.auth_models import RecoveryLink
from admin_console.models.enums import RecoveryMethod
from admin_console.utils.urls import clean_url

__all__ = ["parse_recovery_link"]

_Params = dict[str, list[str]]


def _first(params: _Params, key: str) -> Optional[str]:
    values = params.get(key)
    return values[0] if values else None


def _either(primary: _Params, secondary: _Params, key: str) -> Optional[str]:
    return _first(primary, key) or _first(secondary, key)


def parse_recovery_link(url: str) -> Optional[RecoveryLink]:
    """Extract recovery credentials from *url*.

    Returns
    -------
    RecoveryLink | None
        The single recovery method to attempt, or ``None`` when the URL
        carries no recognisable recovery parameters.
    """
    parts = urlsplit(url)
    query: _Params = parse_qs(parts.query)
    fragment: _Params = parse_qs(parts.fragment)
    target = clean_url(url)

    code = _first(query, "code")
    if code:
        return RecoveryLink(method=RecoveryMethod.CODE_EXCHANGE, code=code, clean_url=target)

    link_type = _either(fragment, query, "type")
    access_token = _either(fragment, query, "access_token")
    refresh_token = _either(fragment, query, "refresh_token")
    if link_type == "recovery" and access_token and refresh_token:
        return RecoveryLink(
            method=RecoveryMethod.TOKEN_PAIR,
            access_token=access_token,
            refresh_token=refresh_token,
            clean_url=target,
        )

    token = _either(query, fragment, "token")
    email = _either(query, fragment, "email")
    if token and email:
        return RecoveryLink(
            method=RecoveryMethod.OTP_EMAIL,
            token=token,
            email=email,
            clean_url=target,
        )

    token_hash = _either(query, fragment, "token_hash")
    if token_hash:
        return RecoveryLink(
            method=RecoveryMethod.OTP_TOKEN_HASH,
            token_hash=token_hash,
            clean_url=target,
        )

    return None
