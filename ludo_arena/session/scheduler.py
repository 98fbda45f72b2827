"""
Scheduler - Cancellable delayed callbacks for turn timers.

The orchestrator never sleeps. It asks a Scheduler to call it back later
and keeps the handle so the timer can be cancelled when the turn moves on.
"""

from __future__ import annotations
from typing import Any, Callable, Protocol
import asyncio
import time


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Source of time and delayed callbacks."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop (loop.call_later)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        # Resolved per call: rooms outlive any single connection handler
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        # Wall clock; snapshot timestamps are sent to clients
        return time.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback, *args)
