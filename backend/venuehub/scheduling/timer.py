"""RepeatingTimer: run a coroutine function every N seconds on the event loop.

Each firing is spawned as its own task, so a callback that hangs never delays
the next firing and never blocks ``cancel()``. Cancelling only stops future
firings; callbacks already running are left to finish.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class RepeatingTimer:
    """Disposable handle for a periodic callback.

    Usage:
        timer = RepeatingTimer(60, scheduler.tick, name="activity-scheduler")
        timer.start()   # fires immediately, then every 60s
        ...
        timer.cancel()
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], Awaitable[Any]],
        *,
        name: str = "repeating-timer",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self.name = name
        self._callback = callback
        self._task: asyncio.Task | None = None
        self._firings: set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Arm the timer. Must be called from inside a running event loop."""
        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        """Disarm the timer. Safe to call when not armed."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            self._fire()
            await asyncio.sleep(self.interval_seconds)

    def _fire(self) -> None:
        task = asyncio.create_task(self._callback(), name=f"{self.name}:firing")
        self._firings.add(task)
        task.add_done_callback(self._on_firing_done)

    def _on_firing_done(self, task: asyncio.Task) -> None:
        self._firings.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "timer_callback_failed",
                timer=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
