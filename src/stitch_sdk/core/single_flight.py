"""Single-flight call coalescing.

Concurrent callers of ``SingleFlight.do`` share one execution of the
supplied function: the first caller runs it, the rest wait and receive
the same value or exception.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class _Call(Generic[T]):
    """Tracks one in-flight execution and the callers waiting on it."""

    def __init__(self) -> None:
        self.finished = threading.Event()
        self.value: T | None = None
        self.error: BaseException | None = None
        self.waiters = 0


class SingleFlight(Generic[T]):
    """Guard allowing at most one in-flight execution at a time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._call: _Call[T] | None = None
        self._executions = 0

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._call is not None

    @property
    def executions(self) -> int:
        """Number of times a leader actually ran its function."""
        with self._lock:
            return self._executions

    def do(self, fn: Callable[[], T]) -> T:
        """Run ``fn``, or join the execution already in flight.

        Joining and publishing the outcome both happen under the same
        lock, so a caller either joins before the outcome is published or
        starts a fresh execution afterwards.
        """
        with self._lock:
            call = self._call
            if call is not None:
                call.waiters += 1
                leader = False
            else:
                call = self._call = _Call()
                self._executions += 1
                leader = True

        if not leader:
            call.finished.wait()
            return self._outcome(call)

        try:
            call.value = fn()
        except BaseException as e:
            call.error = e
        finally:
            with self._lock:
                self._call = None
                call.finished.set()
        return self._outcome(call)

    @staticmethod
    def _outcome(call: _Call[T]) -> T:
        if call.error is not None:
            raise call.error
        return call.value  # type: ignore[return-value]
