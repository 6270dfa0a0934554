"""Cancellable delayed tasks used for debouncing."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class DelayedTask(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> DelayedTask:
        ...


class AsyncioScheduler:
    """Runs callbacks on the running event loop after ``delay`` seconds."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)
