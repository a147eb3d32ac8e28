"""Fixed-capacity worker pool.

Capacity is a set of tokens (a bounded semaphore).  :meth:`WorkerPool.submit`
takes a token *before* handing the task to a thread, and the task gives it
back in a ``finally`` block, so at most ``size`` tasks are ever in flight
and a caller that runs out of tokens simply blocks.  That blocking is the
only backpressure in the download pipeline.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class WorkerPool:
    """Run callables on at most *size* threads at once."""

    def __init__(self, size: int, thread_name_prefix: str = "harvest") -> None:
        if size < 1:
            raise ValueError(f"pool size must be >= 1, got {size}")
        self.size = size
        self._tokens = threading.BoundedSemaphore(size)
        self._executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix=thread_name_prefix)
        self._lock = threading.Lock()
        self.in_flight = 0
        self.peak_in_flight = 0

    def _enter(self) -> None:
        with self._lock:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

    def _leave(self) -> None:
        with self._lock:
            self.in_flight -= 1

    def _run(self, fn: Callable[..., Any], args: tuple) -> Any:
        self._enter()
        try:
            return fn(*args)
        except Exception:
            logger.exception("worker task %r failed", getattr(fn, "__name__", fn))
            return None
        finally:
            self._leave()
            self._tokens.release()

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Block until a token is free, then run ``fn(*args)`` on a worker."""
        self._tokens.acquire()
        try:
            future = self._executor.submit(self._run, fn, args)
        except BaseException:
            self._tokens.release()
            raise
        return future

    def drain(self) -> None:
        """Wait for every submitted task, then stop the threads."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.drain()
