"""Trailing debounce for coroutine callbacks.

Every ``trigger()`` cancels the pending timer and starts a new one, so the
callback fires once, ``delay`` seconds after the *last* trigger. A callback
that has already started is never cancelled by a later trigger.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger("daybook")


class Debouncer:
    def __init__(self, delay: float, callback: Callable[[], Awaitable[object]], *, name: str = "debounce"):
        if delay <= 0:
            raise ValueError("debounce delay must be positive")
        self.delay = delay
        self.name = name
        self._callback = callback
        self._timer: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to fire."""
        return self._timer is not None and not self._timer.done()

    def trigger(self) -> None:
        """(Re)start the quiescence window. Must be called from a running loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._wait_then_fire())

    def cancel(self) -> None:
        """Drop the pending timer, if any."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def flush(self) -> bool:
        """Fire immediately if a timer is pending. Returns whether it fired."""
        if not self.pending:
            return False
        self.cancel()
        await self._fire()
        return True

    async def wait_idle(self) -> None:
        """Wait for callbacks that are already running."""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.current_task()
        # Detach so a later trigger() cannot cancel the callback mid-flight
        self._timer = None
        if task is not None:
            self._running.add(task)
        try:
            await self._fire()
        finally:
            if task is not None:
                self._running.discard(task)

    async def _fire(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("[%s] debounced callback failed", self.name)
