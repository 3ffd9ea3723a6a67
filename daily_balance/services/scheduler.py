"""
Cancellable scheduled tasks and the autosave debouncer.

The scheduler is injectable: production code runs on the asyncio event loop,
tests drive a VirtualScheduler whose clock only moves when advanced.
"""

from __future__ import annotations

import asyncio
import heapq
import inspect
import itertools
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger


Callback = Callable[[], Any]


class ScheduledTask:
    """Handle for a callback due at a point in scheduler time."""

    def __init__(self, when: float, callback: Callback):
        self.when = when
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        if self.fired:
            return
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    async def run(self) -> None:
        if not self.pending:
            return
        self.fired = True
        result = self._callback()
        if inspect.isawaitable(result):
            await result


class Scheduler(ABC):
    @abstractmethod
    def now(self) -> float:
        """Current scheduler time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        """Schedule callback (sync or async) to run after delay seconds."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio loop."""

    def __init__(self) -> None:
        self._running: set[asyncio.Task] = set()

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        loop = asyncio.get_running_loop()
        task = ScheduledTask(loop.time() + delay, callback)
        task._timer = loop.call_later(delay, self._spawn, task)
        return task

    def _spawn(self, task: ScheduledTask) -> None:
        job = asyncio.ensure_future(task.run())
        self._running.add(job)
        job.add_done_callback(self._running.discard)

    async def drain(self) -> None:
        """Wait for callbacks that already fired to finish."""
        if self._running:
            await asyncio.gather(*list(self._running))


class VirtualScheduler(Scheduler):
    """Deterministic scheduler whose time only moves through advance()."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        task = ScheduledTask(self._now + delay, callback)
        heapq.heappush(self._queue, (task.when, next(self._seq), task))
        return task

    @property
    def pending(self) -> list[ScheduledTask]:
        return sorted((task for _, _, task in self._queue if task.pending), key=lambda t: t.when)

    async def advance(self, seconds: float) -> None:
        """Move time forward, running every due callback in order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, task = heapq.heappop(self._queue)
            self._now = when
            await task.run()
        self._now = target


class AutosaveScheduler:
    """
    Debounced autosave trigger.

    Every touch restarts the idle window, so only the last mutation of a
    burst decides when the save fires. When the window elapses the dirty
    check runs again; a buffer cleaned in the meantime (e.g. by a manual
    save) makes the pending autosave a no-op.
    """

    def __init__(self, scheduler: Scheduler, delay: float):
        self.scheduler = scheduler
        self.delay = delay
        self._pending: ScheduledTask | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.pending

    def touch(
        self,
        is_dirty: Callable[[], bool],
        action: Callable[[], Awaitable[Any]],
    ) -> None:
        self.cancel()
        if not is_dirty():
            return

        async def fire() -> None:
            self._pending = None
            if not is_dirty():
                logger.debug("Autosave superseded, buffer already clean")
                return
            logger.debug("Autosave firing")
            await action()

        self._pending = self.scheduler.call_later(self.delay, fire)
        logger.debug("Autosave scheduled", due=round(self._pending.when, 3))

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
