"""
Session State Holder.

Provides an injectable, observable ``SessionStore`` that holds the
console's authentication state for the lifetime of the process.

States::

    LOADING ──► ANONYMOUS ◄──► AUTHENTICATED(identity, profile)

Every write goes through one lock-protected entry point.  Writers that
must perform a blocking fetch between receiving an event and committing
its result (session-change notifications) first take a *ticket*; the
commit is applied only if no newer ticket has been issued in the
meantime, so transitions land in arrival order rather than in
completion order.

Usage::

    from admin_console.auth import SessionStore

    store = SessionStore(logger=get_logger("session"))
    unsubscribe = store.subscribe(lambda state: print(state.status))

    ticket = store.begin_transition()
    profile = profile_repo.get_by_id(identity.id)   # slow
    store.commit(ticket, identity, profile)          # dropped if stale
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from admin_console.logger import StructuredLogger
from admin_console.models.enums import SessionStatus
from admin_console.models.identity import Identity, SessionState
from admin_console.models.profile import Profile

SessionSubscriber = Callable[[SessionState], None]


class SessionStore:
    """Observable holder for the current identity and profile.

    Each instance maintains its own state, so there are no module-level
    globals.  The application root owns one ``SessionStore`` and passes
    it to every service that reads or writes the session.

    Parameters
    ----------
    logger:
        Logger used to report subscriber failures and discarded commits.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger
        self._lock: threading.RLock = threading.RLock()
        self._state: SessionState = SessionState()
        self._latest_ticket: int = 0
        self._subscribers: list[SessionSubscriber] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Return the current immutable snapshot."""
        with self._lock:
            return self._state

    @property
    def current_identity(self) -> Optional[Identity]:
        with self._lock:
            return self._state.identity

    @property
    def current_profile(self) -> Optional[Profile]:
        with self._lock:
            return self._state.profile

    @property
    def is_authenticated(self) -> bool:
        """``True`` when an identity with a profile is committed."""
        with self._lock:
            return self._state.is_authenticated

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def begin_transition(self) -> int:
        """Issue a ticket for a transition whose result is not known yet.

        Returns
        -------
        int
            A monotonically increasing sequence number.  Pass it to
            :meth:`commit` once the profile fetch completes.
        """
        with self._lock:
            self._latest_ticket += 1
            return self._latest_ticket

    def commit(
        self,
        ticket: int,
        identity: Optional[Identity],
        profile: Optional[Profile],
    ) -> bool:
        """Apply a transition if *ticket* is still the newest one issued.

        An identity without a profile is committed as ``ANONYMOUS``: the
        backend may consider it signed in, but the console does not.

        Returns
        -------
        bool
            ``True`` when the transition was applied, ``False`` when it
            was superseded by a newer ticket and discarded.
        """
        with self._lock:
            if ticket != self._latest_ticket:
                self._logger.debug(
                    "Discarding stale session commit (ticket %d, latest %d).",
                    ticket,
                    self._latest_ticket,
                )
                return False
            new_state = self._build_state(identity, profile)
            self._state = new_state

        self._notify(new_state)
        return True

    def set_authenticated(self, identity: Identity, profile: Profile) -> SessionState:
        """Commit a signed-in identity, superseding every in-flight fetch."""
        ticket = self.begin_transition()
        self.commit(ticket, identity, profile)
        return self.state

    def clear(self) -> SessionState:
        """Drop the current identity, superseding every in-flight fetch."""
        ticket = self.begin_transition()
        self.commit(ticket, None, None)
        return self.state

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: SessionSubscriber) -> Callable[[], None]:
        """Register *callback* for every applied transition.

        Returns a zero-argument callable that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_state(
        self,
        identity: Optional[Identity],
        profile: Optional[Profile],
    ) -> SessionState:
        # Caller holds self._lock.
        version = self._state.version + 1
        if identity is None or profile is None:
            return SessionState(status=SessionStatus.ANONYMOUS, version=version)
        return SessionState(
            status=SessionStatus.AUTHENTICATED,
            identity=identity,
            profile=profile,
            version=version,
        )

    def _notify(self, state: SessionState) -> None:
        # Invoked outside the lock so subscribers may read the store.
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(state)
            except Exception as exc:
                self._logger.error(
                    "Session subscriber %r failed: %s",
                    callback,
                    exc,
                    exc_info=True,
                )
