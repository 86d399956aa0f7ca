"""Request prioritisation.

User actions run at HIGH priority: immediately, and they open (or restart) a
short exclusivity window. LOW priority work (background polls) submitted
while the window is open is queued in FIFO order and started when the window
closes. Queued work is only ever cancelled by :meth:`RequestPrioritizer.close`.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from .const import HIGH_PRIORITY_WINDOW

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

Work = Callable[[], Awaitable[Any]]


class Priority(str, Enum):
    HIGH = "high"
    LOW = "low"


class RequestPrioritizer:
    """Gate LOW priority work behind recent HIGH priority work."""

    def __init__(self, window: float = HIGH_PRIORITY_WINDOW) -> None:
        self._window = window
        self._window_handle: asyncio.TimerHandle | None = None
        self._queue: deque[tuple[Work, asyncio.Future]] = deque()
        self._tasks: set[asyncio.Task] = set()

    @property
    def window_open(self) -> bool:
        return self._window_handle is not None

    @property
    def queued(self) -> int:
        return len(self._queue)

    def submit(self, priority: Priority, work: Callable[[], Awaitable[_T]]) -> asyncio.Future[_T]:
        """Schedule *work* and return a future for its result."""
        loop = asyncio.get_running_loop()

        if Priority(priority) is Priority.HIGH:
            self._open_window(loop)
            return self._start(loop, work)

        if self.window_open:
            future: asyncio.Future[_T] = loop.create_future()
            self._queue.append((work, future))
            _LOGGER.debug("Low priority request queued (%d waiting)", len(self._queue))
            return future
        return self._start(loop, work)

    def close(self) -> None:
        """Cancel the window, every queued future and every running task."""
        if self._window_handle is not None:
            self._window_handle.cancel()
            self._window_handle = None
        while self._queue:
            _work, future = self._queue.popleft()
            future.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    # ------------------------------------------------------------------

    def _open_window(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._window_handle is not None:
            self._window_handle.cancel()
        self._window_handle = loop.call_later(self._window, self._close_window)

    def _close_window(self) -> None:
        self._window_handle = None
        if not self._queue:
            return
        loop = asyncio.get_running_loop()
        _LOGGER.debug("Priority window closed, draining %d queued requests", len(self._queue))
        while self._queue and self._window_handle is None:
            work, future = self._queue.popleft()
            if future.done():
                continue
            self._track(loop.create_task(self._run_into(work, future)))

    def _start(self, loop: asyncio.AbstractEventLoop, work: Callable[[], Awaitable[_T]]) -> asyncio.Task[_T]:
        task = loop.create_task(work())
        self._track(task)
        return task

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _run_into(work: Work, future: asyncio.Future) -> None:
        try:
            result = await work()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as err:  # noqa: BLE001
            if not future.done():
                future.set_exception(err)
            return
        if not future.done():
            future.set_result(result)
