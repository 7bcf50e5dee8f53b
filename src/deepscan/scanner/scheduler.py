"""Continuous scheduler — reruns a scan on a fixed interval until cancelled."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-way cancelled flag that sleeping tasks can wait on."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


class ContinuousScheduler:
    """Runs *tick* every *interval* seconds, measured from the end of the previous tick.

    Ticks never overlap. Cancelling lets an in-flight tick finish but no
    further tick starts. Exceptions from *tick* go to *on_error* and the loop
    keeps running.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[object]],
        interval: float,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._tick = tick
        self.interval = interval
        self._on_error = on_error
        self.token = CancellationToken()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Scheduler already started")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    def cancel(self) -> None:
        self.token.cancel()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def _loop(self) -> None:
        logger.debug("Continuous schedule armed (every %.3fs)", self.interval)
        while not self.token.cancelled:
            if await self.token.sleep(self.interval):
                break
            try:
                await self._tick()
            except Exception as e:
                if self._on_error is not None:
                    self._on_error(e)
                else:
                    logger.warning("Scheduled scan failed: %s", e)
        logger.debug("Continuous schedule stopped")
