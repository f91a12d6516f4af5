"""Holder of the active session credentials.

This is the only shared mutable state of the request pipeline. Reads and
writes go through a lock; credentials are swapped wholesale so readers
never see a half-updated set.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from ..models import Credentials
from ..telemetry import get_logger

CredentialListener = Callable[[Credentials | None], None]


class CredentialState:
    """Lock-protected current credentials with change notification."""

    def __init__(self, initial: Credentials | None = None) -> None:
        self._lock = threading.Lock()
        self._notify_lock = threading.RLock()
        self._credentials = initial
        self._listeners: list[CredentialListener] = []
        self._logger = get_logger()

    def current(self) -> Credentials | None:
        """Get the active credentials, or ``None`` when logged out."""
        with self._lock:
            return self._credentials

    def is_logged_in(self) -> bool:
        return self.current() is not None

    def replace(self, credentials: Credentials | None) -> None:
        """Swap in a new credential set and notify listeners.

        Concurrent calls serialize; the last writer wins and every
        listener is handed the state as of its notification.
        """
        with self._lock:
            self._credentials = credentials
        self._notify()

    def clear(self) -> None:
        """Drop the active credentials."""
        self.replace(None)

    def on_change(self, listener: CredentialListener) -> None:
        """Register a listener called after every replace."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: CredentialListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self) -> None:
        with self._notify_lock:
            with self._lock:
                listeners = list(self._listeners)
                snapshot = self._credentials
            for listener in listeners:
                try:
                    listener(snapshot)
                except Exception:
                    self._logger.exception(
                        "Credential listener failed",
                        listener=getattr(listener, "__qualname__", repr(listener)),
                    )
