"""Serial task queue for calls that must not overlap."""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallQueue:
    """Runs queued coroutine factories one at a time, in FIFO order.

    ``enqueue`` returns a future resolving to the task's result (or raising
    its exception). A single in-flight guard keeps the queue head from being
    processed twice.
    """

    def __init__(self) -> None:
        self._queue: deque[tuple[Callable[[], Awaitable], asyncio.Future]] = deque()
        self._processing = False
        self._worker: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def busy(self) -> bool:
        return self._processing

    def enqueue(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._queue.append((task, future))
        if not self._processing:
            self._processing = True
            self._worker = loop.create_task(self._process())
        return future

    def clear(self) -> int:
        """Drop tasks that have not started yet. Returns how many were dropped."""
        dropped = 0
        while self._queue:
            _, future = self._queue.popleft()
            future.cancel()
            dropped += 1
        if dropped:
            logger.debug("Dropped %d pending task(s)", dropped)
        return dropped

    async def _process(self) -> None:
        try:
            while self._queue:
                task, future = self._queue.popleft()
                if future.cancelled():
                    continue
                try:
                    result = await task()
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as e:
                    if not future.cancelled():
                        future.set_exception(e)
                else:
                    if not future.cancelled():
                        future.set_result(result)
        finally:
            self._processing = False
