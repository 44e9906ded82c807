"""Cancellable stream of list snapshots fed by store change events."""

import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """
    Async iterator over full-list snapshots.

    Producers call ``publish`` (safe from any thread) with the complete,
    already ordered list; consumers ``async for`` over it. ``close`` is
    idempotent: once it returns, no further snapshot is delivered, including
    snapshots from fetches that were still in flight.
    """

    def __init__(self, name: str):
        self.name = name
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._teardowns: List[Callable[[], Any]] = []
        self._tasks: set = set()

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, snapshot: List[T]) -> None:
        if self._closed or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._deliver, snapshot)

    def fail(self, error: BaseException) -> None:
        """Surface a producer error to the consumer; iteration raises it."""
        if self._closed or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._deliver, error)

    def _deliver(self, item) -> None:
        if self._closed:
            return
        self._queue.put_nowait(item)

    def add_teardown(self, teardown: Callable[[], Any]) -> None:
        """Register a callable (sync or async) run once on close."""
        self._teardowns.append(teardown)

    def track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        for teardown in reversed(self._teardowns):
            try:
                result = teardown()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Teardown failed for subscription {self.name}")
        self._teardowns.clear()
        logger.debug(f"Subscription {self.name} closed")

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[T]:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def next_snapshot(self, timeout: Optional[float] = None) -> List[T]:
        return await asyncio.wait_for(self.__anext__(), timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
