"""Timer scheduling for staged UI transitions.

The quiz flow is driven by fixed-delay continuations rather than by
parallel work. Everything that needs "run this later" goes through a
``Scheduler`` so the flow controller never touches the event loop directly.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Schedules delayed callbacks and background coroutines."""

    def after(self, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` once, ``delay`` seconds from now."""
        ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Run ``coro`` in the background without awaiting it."""
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self) -> None:
        self._handles: set[asyncio.TimerHandle] = set()
        self._tasks: set[asyncio.Task] = set()

    def after(self, delay: float, callback: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def fire() -> None:
            self._handles.discard(handle)
            try:
                callback()
            except Exception:
                logger.exception("Scheduled transition %r failed", callback)

        handle = loop.call_later(delay, fire)
        self._handles.add(handle)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task failed: %s", error, exc_info=error)

    @property
    def pending(self) -> int:
        """Number of timers and tasks not yet finished."""
        return len(self._handles) + len(self._tasks)

    def cancel_all(self) -> None:
        """Cancel outstanding timers and tasks (session teardown)."""
        for handle in self._handles:
            handle.cancel()
        for task in self._tasks:
            task.cancel()
        self._handles.clear()
        self._tasks.clear()
