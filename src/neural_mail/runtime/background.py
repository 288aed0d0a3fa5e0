"""
Background execution context.

One daemon thread runs a private asyncio event loop. Gateway calls are
awaited on that loop; blocking store calls are pushed from it into the
loop's default executor, a bounded ThreadPoolExecutor. Callers on any
thread hand work over with ``submit`` and get a concurrent Future back,
so the presentation context never waits on network or disk.
"""

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Coroutine, Optional, TypeVar

import structlog

from neural_mail.config import Settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RuntimeStopped(RuntimeError):
    """Work was submitted after the runtime was shut down."""


class BackgroundRuntime:
    """
    Event loop thread plus worker pool.

    Usage:
        with BackgroundRuntime(max_workers=4) as runtime:
            future = runtime.submit(worker.run())
            report = future.result(timeout=30)
    """

    def __init__(self, max_workers: int = 4, name: str = "neural-mail-runtime"):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._stopped = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackgroundRuntime":
        return cls(max_workers=settings.WORKER_THREADS)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self.start()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped

    def start(self) -> asyncio.AbstractEventLoop:
        """Start the loop thread. Idempotent; returns the running loop."""
        with self._lock:
            if self._stopped:
                raise RuntimeStopped(f"{self.name} has been shut down")
            if self._loop is not None:
                return self._loop

            ready = threading.Event()
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix=f"{self.name}-io"
            )
            self._loop = asyncio.new_event_loop()
            self._loop.set_default_executor(self._executor)

            def run() -> None:
                asyncio.set_event_loop(self._loop)
                self._loop.call_soon(ready.set)
                self._loop.run_forever()

            self._thread = threading.Thread(target=run, name=self.name, daemon=True)
            self._thread.start()
            ready.wait()

        logger.info("Background runtime started", name=self.name, max_workers=self.max_workers)
        return self._loop

    def submit(self, coro: Coroutine[Any, Any, T]) -> "Future[T]":
        """
        Schedule a coroutine on the runtime loop.

        Returns:
            concurrent.futures.Future resolved on the runtime thread

        Raises:
            RuntimeStopped: the runtime was shut down
        """
        try:
            loop = self.start()
        except RuntimeStopped:
            coro.close()
            raise
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def shutdown(self, timeout: float = 5.0) -> None:
        """
        Cancel pending tasks, stop the loop and the worker pool.

        Idempotent. Work still in the pool thread finishes in the background;
        its results are discarded.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            loop, thread, executor = self._loop, self._thread, self._executor

        if loop is None:
            return

        async def cancel_pending() -> None:
            current = asyncio.current_task()
            pending = [task for task in asyncio.all_tasks() if task is not current]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if thread is not None and thread.is_alive():
            try:
                asyncio.run_coroutine_threadsafe(cancel_pending(), loop).result(timeout)
            except FutureTimeoutError:
                logger.warning("Timed out cancelling background tasks", name=self.name)
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout)

        if not loop.is_running():
            loop.close()
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info("Background runtime stopped", name=self.name)

    def __enter__(self) -> "BackgroundRuntime":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        state = "running" if self.is_running else ("stopped" if self._stopped else "idle")
        return f"{self.__class__.__name__}(name={self.name!r}, workers={self.max_workers}, {state})"
