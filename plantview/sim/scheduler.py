"""Periodic tick driver running on an asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class TickScheduler:
    """Call ``callback`` every ``interval_ms`` milliseconds.

    The callback runs synchronously on the loop, so a tick always finishes
    before any other loop task (pointer handling, rendering) sees the model.
    Exceptions escaping the callback are logged and the schedule carries on.
    """

    def __init__(self, callback: Callable[[], Any], interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._callback = callback
        self._interval_ms = int(interval_ms)
        self._task: Optional[asyncio.Task] = None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin ticking.  Must be called from inside a running event loop."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        logger.debug(f"Tick scheduler started at {self._interval_ms} ms")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Tick scheduler stopped")

    def set_interval(self, interval_ms: int) -> None:
        """Change the period.  A running schedule restarts from now."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._interval_ms = int(interval_ms)
        if self.running:
            self.stop()
            self.start()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_ms / 1000.0)
            try:
                self._callback()
            except Exception:
                logger.exception("Tick callback failed; keeping schedule")
