"""
Background asyncio Loop.

The login state machine lives on an asyncio event loop, while the
CustomTkinter main loop owns the process's main thread.  This module
runs that event loop on a daemon thread so the two never block each
other.  Callers on the Tk thread hand work over with :meth:`submit`
(coroutines) or :meth:`call` (plain callables); results come back via
the state machine's listeners, which the UI re-marshals with
``after(0, ...)``.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional, TypeVar

from flight_login.logger import StructuredLogger

T = TypeVar("T")


class AsyncLoopThread:
    """Owns an asyncio event loop running on a daemon thread.

    Parameters
    ----------
    logger:
        Structured JSON logger.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger = logger
        self._loop: asyncio.AbstractEventLoop = asyncio.new_event_loop()
        self._thread: Optional[threading.Thread] = None
        self._ready: threading.Event = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop thread and wait until the loop is running.  Idempotent."""
        if self.is_running:
            return

        self._thread = threading.Thread(
            target=self._run, name="AsyncLoop", daemon=True,
        )
        self._thread.start()
        self._ready.wait(timeout=5.0)
        self._logger.info("Async loop thread started.")

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """Schedule *coro* on the loop from any thread."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(self._log_failure)
        return future

    def call(self, fn: Callable[..., object], *args: object) -> None:
        """Run ``fn(*args)`` on the loop thread without waiting."""
        self._loop.call_soon_threadsafe(fn, *args)

    def stop(self) -> None:
        """Stop the loop and wait up to 5 s for the thread to exit."""
        if self._thread is None:
            return

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5.0)
        if self._thread.is_alive():
            self._logger.warning("Async loop thread did not terminate within 5 s.")
        else:
            self._loop.close()
            self._logger.info("Async loop thread stopped.")
        self._thread = None

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True),
                )

    def _log_failure(self, future: Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._logger.error(
                "Background coroutine failed: %s", exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
