"""Periodic asyncio driver for the display engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class Ticker:
    """Invoke an async callback every `interval_seconds` until stopped.

    A failing callback is logged and the loop carries on with the next
    interval; cancellation ends the loop.
    """

    def __init__(self, name: str, interval_seconds: float, callback: TickCallback) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run(), name=f"ticker-{self.name}")
        LOGGER.info("Ticker %s started (every %ss)", self.name, self.interval_seconds)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        LOGGER.info("Ticker %s stopped", self.name)

    async def run(self) -> None:
        """Run the callback, then sleep, repeatedly until cancelled."""
        while True:
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Ticker %s callback failed", self.name)
            await asyncio.sleep(self.interval_seconds)
