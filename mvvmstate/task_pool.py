"""A shared set of background tasks with abortable handles."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine

_log = logging.getLogger(__name__)


class TaskHandle:
    """Handle to one spawned task."""

    __slots__ = ("_task",)

    def __init__(self, task: asyncio.Task[Any]) -> None:
        self._task = task

    def abort(self) -> None:
        """Request cancellation of the task; harmless if it already finished."""
        self._task.cancel()

    def is_finished(self) -> bool:
        return self._task.done()


class TaskPool:
    """Tasks spawned on the running event loop and tracked until they finish.

    Copies of a reference to the pool share the same set of tasks.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def _start(self, coro: Coroutine[Any, Any, None]) -> TaskHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        with self._lock:
            self._tasks.add(task)
        task.add_done_callback(self._finished)
        return TaskHandle(task)

    def _finished(self, task: asyncio.Task[Any]) -> None:
        with self._lock:
            self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _log.error("task in pool failed", exc_info=task.exception())

    def spawn(self, coro: Coroutine[Any, Any, None]) -> TaskHandle:
        """Run a coroutine as a task on the running event loop."""
        return self._start(coro)

    def spawn_local(self, coro: Coroutine[Any, Any, None]) -> TaskHandle:
        """Run a coroutine as a task on the running event loop of this thread."""
        return self._start(coro)

    def abort_all(self) -> None:
        """Request cancellation of every task still running."""
        with self._lock:
            tasks = list(self._tasks)
        for task in tasks:
            task.cancel()