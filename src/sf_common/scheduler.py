"""Delayed-callback scheduler used by the order polling engine.

Cancelling a handle only stops a callback that has not fired yet; once the
callback's task is running it is allowed to finish.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

AsyncCallback = Callable[[], Awaitable[None]]


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: AsyncCallback) -> ScheduledHandle: ...


class AsyncioScheduler:
    """Schedules coroutines on the running event loop via ``loop.call_later``."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def call_later(self, delay: float, callback: AsyncCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._spawn, loop, callback)

    def _spawn(self, loop: asyncio.AbstractEventLoop, callback: AsyncCallback) -> None:
        task = loop.create_task(self._run(callback))
        # Keep a strong reference until the task completes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, callback: AsyncCallback) -> None:
        await callback()

    async def drain(self) -> None:
        """Wait for callbacks that already fired."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
