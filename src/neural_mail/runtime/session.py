"""
Session liveness tokens.

A SessionToken is created by the presentation context for a UI session
(a window, a view, a request) and invalidated on teardown. Background work
receives the same token: the gateway checks it between attempts so that
superseded work stops early, and the result bridge checks it before
applying a delivery.
"""

import itertools
import threading


class RequestCancelled(Exception):
    """Raised inside background work once its session token is invalidated."""

    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} is no longer live")
        self.session_id = session_id


class SessionToken:
    """Thread-safe liveness flag shared between presentation and workers."""

    _ids = itertools.count(1)

    def __init__(self, label: str = "session"):
        self.id = next(self._ids)
        self.label = label
        self._live = threading.Event()
        self._live.set()

    @property
    def is_live(self) -> bool:
        return self._live.is_set()

    def invalidate(self) -> None:
        """Mark the session torn down. Idempotent."""
        self._live.clear()

    def raise_if_cancelled(self) -> None:
        if not self._live.is_set():
            raise RequestCancelled(self.id)

    def __repr__(self) -> str:
        state = "live" if self.is_live else "dead"
        return f"SessionToken(id={self.id}, label={self.label!r}, {state})"
