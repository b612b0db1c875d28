"""Background event loop for fire-and-forget dispatch.

A single asyncio loop runs on a daemon thread. Any thread may hand it a
coroutine with ``submit`` and return immediately, or ``await run(...)`` from
its own loop to wait for the result. All provider calls made by one
``TelemetryService`` execute on this loop.

The loop is started lazily on first use and can be stopped and restarted.
"""

import asyncio
import concurrent.futures
import logging
import threading
import time
from typing import Any, Coroutine, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackgroundRunner:
    """Own one event loop thread and the futures scheduled on it.

    Args:
        name: Thread name, visible in thread dumps.
    """

    def __init__(self, name: str = "telemetry-dispatch") -> None:
        self._name = name
        self._lock = threading.RLock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._pending: Set[concurrent.futures.Future] = set()

    @property
    def running(self) -> bool:
        """Whether the loop thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending_count(self) -> int:
        """Number of submitted coroutines that have not settled yet."""
        with self._lock:
            return len(self._pending)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or not self.running:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._serve, args=(loop,), name=self._name, daemon=True
                )
                self._loop = loop
                self._thread = thread
                thread.start()
                logger.debug("Started background loop thread '%s'", self._name)
            return self._loop

    @staticmethod
    def _serve(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
            # finish tasks scheduled just before stop() so their futures settle
            leftover = asyncio.all_tasks(loop)
            if leftover:
                loop.run_until_complete(asyncio.gather(*leftover, return_exceptions=True))
        finally:
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, T]) -> "Optional[concurrent.futures.Future[T]]":
        """Schedule ``coro`` on the background loop without waiting for it.

        Exceptions raised by the coroutine are logged, never re-raised. If the
        loop closes before the coroutine can be scheduled, the call is dropped
        with a warning and None is returned.
        """
        with self._lock:
            loop = self._ensure_loop()
            try:
                future = asyncio.run_coroutine_threadsafe(coro, loop)
            except RuntimeError as e:
                coro.close()
                logger.warning("Dropped telemetry call on '%s': %s", self._name, e)
                return None
            self._pending.add(future)
        future.add_done_callback(self._settled)
        return future

    async def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run ``coro`` on the background loop and wait for its result."""
        with self._lock:
            loop = self._ensure_loop()
            try:
                future = asyncio.run_coroutine_threadsafe(coro, loop)
            except RuntimeError:
                coro.close()
                raise
        return await asyncio.wrap_future(future)

    def _settled(self, future: concurrent.futures.Future) -> None:
        if not future.cancelled():
            exc = future.exception()
            if exc is not None:
                logger.error("Background telemetry call failed: %s", exc, exc_info=exc)
        # discard last so drain() only returns after the failure is logged
        with self._lock:
            self._pending.discard(future)

    def _snapshot(self) -> Set[concurrent.futures.Future]:
        with self._lock:
            return set(self._pending)

    async def drain(self) -> None:
        """Wait until every coroutine submitted so far has settled.

        Work submitted while draining is waited for as well.
        """
        while True:
            pending = self._snapshot()
            if not pending:
                return
            await asyncio.gather(
                *(asyncio.wrap_future(f) for f in pending), return_exceptions=True
            )

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Blocking counterpart of ``drain`` for synchronous callers.

        Returns:
            True if everything settled, False if ``timeout`` expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            pending = self._snapshot()
            if not pending:
                return True
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = concurrent.futures.wait(pending, timeout=remaining)
            if not_done:
                return False

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Wait for pending work, then stop the loop and join its thread."""
        if not self.running:
            return
        if not self.wait_idle(timeout):
            logger.warning(
                "Stopping '%s' with %d telemetry calls still pending",
                self._name,
                self.pending_count,
            )
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is not None and thread is not None:
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout)
            logger.debug("Stopped background loop thread '%s'", self._name)
