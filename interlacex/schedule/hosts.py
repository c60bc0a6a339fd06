from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Deque, Optional, Protocol, runtime_checkable

Task = Callable[[], None]


@runtime_checkable
class TaskHost(Protocol):
    """Deferral primitive of the host environment.

    ``defer`` must not run ``callback`` synchronously; it queues it behind
    whatever work the host already has pending.
    """

    def defer(self, callback: Task) -> None:  # pragma: no cover - protocol
        ...


class QueueHost:
    """FIFO task queue stepped explicitly by its owner (render loop, tests)."""

    def __init__(self) -> None:
        self._tasks: Deque[Task] = deque()

    def defer(self, callback: Task) -> None:
        self._tasks.append(callback)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def run_next(self) -> bool:
        """Run the oldest queued task; return ``False`` when the queue was empty."""

        if not self._tasks:
            return False
        task = self._tasks.popleft()
        task()
        return True

    def run_until_idle(self, max_tasks: int | None = None) -> int:
        """Run queued tasks, including ones they enqueue, until none remain."""

        executed = 0
        while self._tasks:
            if max_tasks is not None and executed >= max_tasks:
                break
            self.run_next()
            executed += 1
        return executed

    def clear(self) -> None:
        self._tasks.clear()


class AsyncioHost:
    """Defers through ``loop.call_soon`` so batches interleave with other coroutines."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def defer(self, callback: Task) -> None:
        self.loop.call_soon(callback)


__all__ = ["Task", "TaskHost", "QueueHost", "AsyncioHost"]
