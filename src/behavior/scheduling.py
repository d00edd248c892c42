# src/behavior/scheduling.py
"""
Clock and task ownership for one behavior session.

Everything the behavior core runs in the background (monitor loops,
deferred resumes, the orchestrator re-entering itself) goes through a
TaskScheduler, so discarding a session is a single cancel_all().
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Set

from spec.capabilities import Clock

log = logging.getLogger(__name__)


class SystemClock:
    """Real time: time.monotonic + asyncio.sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class TaskScheduler:
    """Owns the asyncio tasks of a session."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def active_tasks(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[Any], *, name: Optional[str] = None) -> Optional[asyncio.Task]:
        """Run `coro` as a tracked task. Returns None after cancel_all()."""
        if self._closed:
            # close the coroutine so it does not warn about never being awaited
            if inspect.iscoroutine(coro):
                coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> Optional[asyncio.Task]:
        """Call `fn(*args)` after `delay` seconds; awaits it if it is a coroutine function."""
        name = f"later:{getattr(fn, '__name__', 'call')}"
        return self.spawn(self._deferred(delay, fn, args), name=name)

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> Optional[asyncio.Task]:
        return self.call_later(0.0, fn, *args)

    def cancel_all(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()

    async def _deferred(self, delay: float, fn: Callable[..., Any], args: tuple) -> None:
        if delay > 0:
            await self._clock.sleep(delay)
        result = fn(*args)
        if inspect.isawaitable(result):
            await result

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "Background task %s failed: %r",
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
