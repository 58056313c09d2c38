"""
Cancelable asyncio debouncer.

A scheduled callback runs once the quiet period has elapsed without a newer
``schedule`` call. Rescheduling cancels only the waiting phase; a callback
that already started keeps running until it finishes or ``aclose``.
"""
import asyncio
from typing import Awaitable, Callable, Optional, Set

from threadsmith.core.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[[], Awaitable[None]]


class Debouncer:
    """One timer; the latest ``schedule`` wins."""

    def __init__(self, delay_seconds: float, name: str = "debouncer"):
        self.delay_seconds = max(0.0, delay_seconds)
        self.name = name
        self._timer: Optional[asyncio.Task] = None
        self._callback: Optional[Callback] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a callback is waiting for its quiet period."""
        return self._timer is not None and not self._timer.done()

    @property
    def running(self) -> bool:
        return bool(self._running)

    def schedule(self, callback: Callback) -> None:
        """(Re)start the quiet period for ``callback``. Must run inside an event loop."""
        self.cancel()
        self._callback = callback
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire())

    def cancel(self) -> bool:
        """Cancel the waiting callback. Returns True when one was pending."""
        was_pending = self.pending
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._callback = None
        return was_pending

    async def flush(self) -> None:
        """Fire the pending callback now and wait for it."""
        callback = self._callback
        if not self.cancel() or callback is None:
            return
        await self._start(callback)

    async def aclose(self) -> None:
        """Cancel the timer and every callback still running."""
        self.cancel()
        tasks = list(self._running)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        callback = self._callback
        self._timer = None
        self._callback = None
        if callback is not None:
            self._start(callback)

    def _start(self, callback: Callback) -> asyncio.Future:
        task = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Future) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "debounced_callback_failed",
                debouncer=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )


__all__ = ["Debouncer"]
