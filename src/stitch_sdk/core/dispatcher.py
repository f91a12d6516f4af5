"""Background work scheduling.

Blocking work is run on a bounded thread pool so calling threads never
wait on I/O. Each submission yields a ``ResultHandle``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TypeVar

from ..errors import ClosedError
from ..telemetry import get_logger
from .handle import ResultHandle

T = TypeVar("T")


class TaskDispatcher:
    """Runs blocking work on a shared, bounded pool of worker threads."""

    def __init__(
        self,
        max_workers: int = 8,
        *,
        close_grace_period: float = 5.0,
        thread_name_prefix: str = "stitch-dispatcher",
    ) -> None:
        """Initialize dispatcher.

        Args:
            max_workers: Upper bound on worker threads. Extra work queues.
            close_grace_period: Seconds ``close`` waits for in-flight work.
            thread_name_prefix: Prefix for worker thread names.
        """
        self.max_workers = max_workers
        self.close_grace_period = close_grace_period
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._lock = threading.Lock()
        self._closed = False
        self._in_flight: set[Future[None]] = set()
        self._logger = get_logger()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def submit(self, work: Callable[[], T]) -> ResultHandle[T]:
        """Schedule ``work`` and return a handle to its outcome.

        ``work`` runs at most once, on a worker thread.

        Raises:
            ClosedError: If the dispatcher has been closed.
        """
        handle: ResultHandle[T] = ResultHandle()

        def _run() -> None:
            try:
                value = work()
            except Exception as e:
                handle.fail(e)
            except BaseException as e:
                handle.fail(e)
                raise
            else:
                handle.resolve(value)

        with self._lock:
            if self._closed:
                raise ClosedError()
            future = self._executor.submit(_run)
            self._in_flight.add(future)
        future.add_done_callback(self._discard)
        return handle

    def _discard(self, future: Future[None]) -> None:
        with self._lock:
            self._in_flight.discard(future)

    def close(self) -> None:
        """Stop accepting work and wait for in-flight work to finish.

        Waits at most ``close_grace_period`` seconds. Work still running
        afterwards completes in the background and resolves its handle.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = set(self._in_flight)

        if pending:
            _, not_done = wait(pending, timeout=self.close_grace_period)
            if not_done:
                self._logger.warning(
                    "Dispatcher closed with work still running",
                    pending=len(not_done),
                    grace_period=self.close_grace_period,
                )
        self._executor.shutdown(wait=False)
        self._logger.debug("Dispatcher closed")

    def __enter__(self) -> TaskDispatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
