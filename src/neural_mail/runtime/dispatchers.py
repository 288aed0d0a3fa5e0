"""
Presentation-context dispatchers.

A dispatcher is the only way a background thread reaches the presentation
context: it posts a callback, and the presentation context runs it later
on its own thread. Background code never touches view state directly.

- QueueDispatcher: a thread-safe queue drained by the owning thread, the
  shape of a GUI toolkit's ``after()``/idle hook
- AsyncioDispatcher: posts onto an asyncio loop that acts as the
  presentation context
"""

import asyncio
import queue
import time
from typing import Callable, Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[], None]


class Dispatcher(Protocol):
    def call_soon(self, callback: Callback) -> None:
        """Schedule ``callback`` on the presentation context. Callable from any thread."""
        ...


class QueueDispatcher:
    """
    Callbacks queued from any thread, run by the owner in ``pump()``.

    The owning thread is the thread that calls ``pump``. Typical hosts call
    it from a timer or idle handler of their event loop.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[Callback]" = queue.SimpleQueue()

    def call_soon(self, callback: Callback) -> None:
        self._queue.put(callback)

    def pending(self) -> int:
        return self._queue.qsize()

    def pump(self, max_callbacks: Optional[int] = None) -> int:
        """
        Run queued callbacks on the calling thread.

        Args:
            max_callbacks: Stop after this many (None drains the queue)

        Returns:
            Number of callbacks run
        """
        ran = 0
        while max_callbacks is None or ran < max_callbacks:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                break
            self._run(callback)
            ran += 1
        return ran

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: float = 5.0,
        poll_interval: float = 0.01,
    ) -> bool:
        """
        Pump until ``predicate()`` holds or ``timeout`` expires.

        Returns:
            Final value of ``predicate()``
        """
        deadline = time.monotonic() + timeout
        while True:
            self.pump()
            if predicate():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return predicate()
            try:
                callback = self._queue.get(timeout=min(poll_interval, remaining))
            except queue.Empty:
                continue
            self._run(callback)

    @staticmethod
    def _run(callback: Callback) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Presentation callback failed", callback=repr(callback))


class AsyncioDispatcher:
    """Posts callbacks onto an asyncio loop acting as the presentation context."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    @classmethod
    def for_running_loop(cls) -> "AsyncioDispatcher":
        return cls(asyncio.get_running_loop())

    def call_soon(self, callback: Callback) -> None:
        if self.loop.is_closed():
            logger.warning("Dropping callback for closed presentation loop")
            return
        self.loop.call_soon_threadsafe(callback)
