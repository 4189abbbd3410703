"""
Backend Client Facade.

Wraps the Supabase client behind the small surface the auth workflows
need.  Two rules hold for every method here:

- **No library exception escapes.**  Whatever ``supabase`` raises
  (``AuthApiError``, ``APIError``, ``httpx`` transport errors) is
  re-raised as :class:`BackendCallError` carrying the backend message,
  HTTP status, and error code, so services classify failures by
  inspecting one exception type.
- **No dynamic shape escapes.**  Responses are parsed into pydantic
  models immediately; a response missing a required field raises
  :class:`MalformedResponseError` instead of leaking ``None`` into the
  workflow.

Table access for ``profiles`` and ``admin_activity_logs`` is performed
by the repositories through :pyattr:`SupabaseBackend.supabase`.

Usage (dependency injection at app startup)::

    backend = SupabaseBackend(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="admin_console.backend"),
    )
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from pydantic import ValidationError
from supabase import Client as SupabaseClient
from supabase import create_client

from admin_console.logger import StructuredLogger
from admin_console.models.identity import Identity

T = TypeVar("T")

SessionChangeCallback = Callable[[str, Optional[Identity]], None]
Unsubscribe = Callable[[], None]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class BackendCallError(Exception):
    """A backend operation failed.

    Attributes
    ----------
    message:
        The backend's human-readable message.
    status:
        HTTP status code when the backend returned one (e.g. ``429``).
    code:
        Backend error code when present (``"invalid_credentials"``,
        Postgres ``"42501"``, ...).
    operation:
        Name of the facade / repository operation that failed.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        operation: str = "",
    ) -> None:
        self.message: str = message
        self.status: Optional[int] = status
        self.code: Optional[str] = code
        self.operation: str = operation
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: Exception, operation: str) -> "BackendCallError":
        """Translate any library exception into a ``BackendCallError``."""
        if isinstance(exc, BackendCallError):
            return exc

        raw_message = getattr(exc, "message", None)
        message: str = str(raw_message) if raw_message else (str(exc) or type(exc).__name__)

        raw_status = getattr(exc, "status", None)
        status: Optional[int]
        try:
            status = int(raw_status) if raw_status is not None else None
        except (TypeError, ValueError):
            status = None

        raw_code = getattr(exc, "code", None)
        code: Optional[str] = str(raw_code) if raw_code else None

        return cls(message, status=status, code=code, operation=operation)

    def mentions(self, needle: str) -> bool:
        """Case-insensitive check against the message and code."""
        needle = needle.lower()
        return needle in self.message.lower() or (
            self.code is not None and needle in self.code.lower()
        )


class MalformedResponseError(BackendCallError):
    """The backend answered, but without a field the workflow requires."""


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _to_datetime(value: object) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


def parse_identity(user: object, session: object = None, *, operation: str) -> Identity:
    """Build an :class:`Identity` from a Supabase ``User`` (+ ``Session``).

    Raises
    ------
    MalformedResponseError
        If the user object is missing, or lacks an id or email.
    """
    if user is None:
        raise MalformedResponseError(
            "Backend returned no user data.", operation=operation,
        )
    user_id = getattr(user, "id", None)
    email = getattr(user, "email", None)
    if not user_id or not email:
        raise MalformedResponseError(
            "Backend user is missing its id or email.", operation=operation,
        )
    try:
        return Identity(
            id=str(user_id),
            email=str(email),
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=_to_datetime(getattr(session, "expires_at", None)),
        )
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Backend user failed validation: {exc.error_count()} error(s).",
            operation=operation,
        ) from exc


def parse_session_identity(session: object, *, operation: str) -> Optional[Identity]:
    """Return the identity carried by *session*, or ``None`` if no session."""
    if session is None:
        return None
    return parse_identity(getattr(session, "user", None), session, operation=operation)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class SupabaseBackend:
    """Authentication and data-store facade over a Supabase project.

    When ``supabase_url`` or ``supabase_key`` is empty the client is not
    created; every call then raises :class:`BackendCallError` so the
    workflows report a classified failure instead of crashing.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The project's anon key.  Row-level security decides what it
        may read and write.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    client:
        Pre-built client, for tests and alternate transports.  When
        given, ``supabase_url`` / ``supabase_key`` are ignored.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = client

        if self._supabase is not None:
            return

        if supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except Exception as exc:
                # create_client validates URL and key format eagerly.
                self._logger.error(
                    "Supabase client initialization failed: %s", exc, exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured: backend calls will fail."
            )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        BackendCallError
            If the client was not initialised.
        """
        if self._supabase is None:
            raise BackendCallError(
                "Supabase is not configured. Set SUPABASE_URL and "
                "SUPABASE_ANON_KEY.",
                operation="client",
            )
        return self._supabase

    @property
    def is_configured(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def current_session(self) -> Optional[Identity]:
        """Return the identity of the active session, or ``None``."""
        session = self._call("current_session", lambda: self.supabase.auth.get_session())
        return parse_session_identity(session, operation="current_session")

    def on_session_change(self, callback: SessionChangeCallback) -> Unsubscribe:
        """Subscribe *callback* to auth state changes.

        The callback receives the event name (``"SIGNED_IN"``,
        ``"SIGNED_OUT"``, ``"TOKEN_REFRESHED"``, ...) and the new
        identity, or ``None`` when the change leaves no session.  A
        session whose user cannot be parsed is reported as ``None``.

        Returns a zero-argument callable that cancels the subscription.
        """

        def _listener(event: object, session: object) -> None:
            event_name = str(getattr(event, "value", event))
            try:
                identity = parse_session_identity(session, operation="on_session_change")
            except MalformedResponseError as exc:
                self._logger.warning(
                    "Ignoring malformed session in %s notification: %s",
                    event_name,
                    exc.message,
                )
                identity = None
            callback(event_name, identity)

        subscription = self._call(
            "on_session_change",
            lambda: self.supabase.auth.on_auth_state_change(_listener),
        )

        def _unsubscribe() -> None:
            try:
                subscription.unsubscribe()
            except Exception as exc:
                self._logger.warning("Session subscription cleanup failed: %s", exc)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def password_sign_in(self, email: str, password: str) -> Identity:
        """Authenticate with email + password and return the new identity."""
        response = self._call(
            "password_sign_in",
            lambda: self.supabase.auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
        )
        return parse_identity(
            getattr(response, "user", None),
            getattr(response, "session", None),
            operation="password_sign_in",
        )

    def create_account(
        self,
        email: str,
        password: str,
        metadata: dict[str, str],
    ) -> Identity:
        """Create an identity; *metadata* is stored as user metadata."""
        response = self._call(
            "create_account",
            lambda: self.supabase.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata},
                }
            ),
        )
        return parse_identity(
            getattr(response, "user", None),
            getattr(response, "session", None),
            operation="create_account",
        )

    def oauth_sign_in(self, provider: str, redirect_url: str) -> str:
        """Start an OAuth flow and return the provider URL to open."""
        response = self._call(
            "oauth_sign_in",
            lambda: self.supabase.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_url}}
            ),
        )
        url = getattr(response, "url", None)
        if not url:
            raise MalformedResponseError(
                "Backend returned no OAuth provider URL.", operation="oauth_sign_in",
            )
        return str(url)

    def request_password_reset(self, email: str, redirect_url: str) -> None:
        """Ask the backend to email a recovery link for *email*."""
        self._call(
            "request_password_reset",
            lambda: self.supabase.auth.reset_password_for_email(
                email, {"redirect_to": redirect_url}
            ),
        )

    def update_password(self, new_password: str) -> None:
        """Change the password of the currently active session's user."""
        self._call(
            "update_password",
            lambda: self.supabase.auth.update_user({"password": new_password}),
        )

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def exchange_code_for_session(self, code: str) -> None:
        """Turn a PKCE auth code into an active session."""
        self._call(
            "exchange_code_for_session",
            lambda: self.supabase.auth.exchange_code_for_session({"auth_code": code}),
        )

    def establish_session_from_tokens(self, access_token: str, refresh_token: str) -> None:
        """Make the given token pair the active session."""
        self._call(
            "establish_session_from_tokens",
            lambda: self.supabase.auth.set_session(access_token, refresh_token),
        )

    def verify_one_time_token(
        self,
        otp_type: str,
        *,
        token: Optional[str] = None,
        email: Optional[str] = None,
        token_hash: Optional[str] = None,
    ) -> None:
        """Verify a one-time token (by token + email, or by token hash)."""
        params: dict[str, str] = {"type": otp_type}
        if token_hash:
            params["token_hash"] = token_hash
        else:
            if not token or not email:
                raise BackendCallError(
                    "A one-time token requires both the token and the email.",
                    operation="verify_one_time_token",
                )
            params["token"] = token
            params["email"] = email
        self._call(
            "verify_one_time_token",
            lambda: self.supabase.auth.verify_otp(params),
        )

    def sign_out(self) -> None:
        """Invalidate the active session."""
        self._call("sign_out", lambda: self.supabase.auth.sign_out())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _call(self, operation: str, func: Callable[[], T]) -> T:
        """Run *func*, translating any failure into ``BackendCallError``."""
        try:
            return func()
        except BackendCallError:
            raise
        except Exception as exc:
            error = BackendCallError.from_exception(exc, operation)
            self._logger.debug(
                "Backend %s failed: %s (status=%s, code=%s)",
                operation,
                error.message,
                error.status,
                error.code,
            )
            raise error from exc
