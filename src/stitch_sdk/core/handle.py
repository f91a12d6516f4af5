"""Single-resolution result handles.

A ``ResultHandle`` is resolved with a value or failed with an exception
exactly once. Observers may attach at any time; each is called once, in
attachment order, after resolution.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Generator
from enum import StrEnum
from typing import Any, Generic, TypeVar

from ..telemetry import get_logger

T = TypeVar("T")
R = TypeVar("R")


class HandleState(StrEnum):
    """Lifecycle of a result handle."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class ResultHandle(Generic[T]):
    """Thread-safe, single-assignment container for a value or an error."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._state = HandleState.PENDING
        self._value: T | None = None
        self._error: BaseException | None = None
        self._callbacks: list[Callable[[ResultHandle[T]], Any]] = []
        self._draining = False

    @classmethod
    def resolved(cls, value: T) -> ResultHandle[T]:
        """Create a handle that is already resolved."""
        handle: ResultHandle[T] = cls()
        handle.resolve(value)
        return handle

    @classmethod
    def failed(cls, error: BaseException) -> ResultHandle[T]:
        """Create a handle that has already failed."""
        handle: ResultHandle[T] = cls()
        handle.fail(error)
        return handle

    @property
    def state(self) -> HandleState:
        with self._condition:
            return self._state

    def done(self) -> bool:
        """Check whether the handle has been resolved or failed."""
        return self.state != HandleState.PENDING

    def resolve(self, value: T) -> None:
        """Resolve the handle with a value.

        Raises:
            RuntimeError: If the handle was already resolved or failed.
        """
        self._settle(HandleState.RESOLVED, value, None)

    def fail(self, error: BaseException) -> None:
        """Fail the handle with an exception.

        Raises:
            RuntimeError: If the handle was already resolved or failed.
        """
        self._settle(HandleState.FAILED, None, error)

    def _settle(
        self,
        state: HandleState,
        value: T | None,
        error: BaseException | None,
    ) -> None:
        with self._condition:
            if self._state != HandleState.PENDING:
                msg = f"Result handle already {self._state.value}"
                raise RuntimeError(msg)
            self._state = state
            self._value = value
            self._error = error
            self._draining = True
            self._condition.notify_all()
        self._drain_callbacks()

    def _drain_callbacks(self) -> None:
        while True:
            with self._condition:
                if not self._callbacks:
                    self._draining = False
                    return
                callback = self._callbacks.pop(0)
            self._invoke(callback)

    def _invoke(self, callback: Callable[[ResultHandle[T]], Any]) -> None:
        try:
            callback(self)
        except Exception:
            get_logger().exception(
                "Result handle callback failed",
                callback=getattr(callback, "__qualname__", repr(callback)),
            )

    def add_done_callback(self, callback: Callable[[ResultHandle[T]], Any]) -> None:
        """Attach an observer called with this handle once it settles.

        Observers attached after resolution are called immediately on the
        attaching thread.
        """
        with self._condition:
            if self._state == HandleState.PENDING or self._draining:
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def _wait(self, timeout: float | None) -> None:
        with self._condition:
            if not self._condition.wait_for(
                lambda: self._state != HandleState.PENDING,
                timeout=timeout,
            ):
                msg = f"Result not available within {timeout} seconds"
                raise TimeoutError(msg)

    def result(self, timeout: float | None = None) -> T:
        """Block until settled and return the value or raise the error.

        Args:
            timeout: Seconds to wait; ``None`` waits forever.

        Raises:
            TimeoutError: If the handle is still pending after ``timeout``.
        """
        self._wait(timeout)
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def exception(self, timeout: float | None = None) -> BaseException | None:
        """Block until settled and return the error, if any."""
        self._wait(timeout)
        return self._error

    def then(self, transform: Callable[[T], R]) -> ResultHandle[R]:
        """Chain a transform, run on the resolving thread.

        Errors from this handle, or raised by ``transform``, fail the
        returned handle.
        """
        chained: ResultHandle[R] = ResultHandle()

        def _on_done(handle: ResultHandle[T]) -> None:
            if handle._error is not None:
                chained.fail(handle._error)
                return
            try:
                chained.resolve(transform(handle._value))  # type: ignore[arg-type]
            except Exception as e:
                chained.fail(e)

        self.add_done_callback(_on_done)
        return chained

    async def wait(self) -> T:
        """Await the outcome without blocking the running event loop."""
        if not self.done():
            loop = asyncio.get_running_loop()
            waiter: asyncio.Future[None] = loop.create_future()

            def _wake(waiter: asyncio.Future[None] = waiter) -> None:
                if not waiter.done():
                    waiter.set_result(None)

            self.add_done_callback(lambda _: loop.call_soon_threadsafe(_wake))
            await waiter
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f"ResultHandle(state={self.state.value!r})"
