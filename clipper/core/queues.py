from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class OverflowPolicy(str, Enum):
    DROP_OLDEST = "DROP_OLDEST"
    DROP_NEWEST = "DROP_NEWEST"


class BoundedQueue(Generic[T]):
    """Bounded channel between the voice transport and the packet buffers.

    ``put_nowait`` never blocks so the transport callback stays cheap; when the
    queue is full one item is dropped according to the overflow policy.
    """

    def __init__(self, maxsize: int, overflow_policy: OverflowPolicy = OverflowPolicy.DROP_OLDEST):
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._queue: deque[T] = deque()
        self._maxsize = maxsize
        self._overflow_policy = overflow_policy
        self._not_empty = asyncio.Event()
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._queue)

    def qsize(self) -> int:
        return len(self._queue)

    def clear(self) -> int:
        """Remove all queued items and return how many were removed."""
        n = len(self._queue)
        self._queue.clear()
        self._not_empty.clear()
        return n

    def put_nowait(self, item: T) -> bool:
        """Enqueue ``item``. Returns False if anything had to be dropped."""
        if len(self._queue) < self._maxsize:
            self._queue.append(item)
            self._not_empty.set()
            return True

        self.dropped += 1
        if self._overflow_policy == OverflowPolicy.DROP_OLDEST:
            dropped = self._queue.popleft()
            logger.warning("Dropped oldest item due to overflow: %r", dropped)
            self._queue.append(item)
            self._not_empty.set()
            return False
        if self._overflow_policy == OverflowPolicy.DROP_NEWEST:
            logger.warning("Dropped newest item due to overflow: %r", item)
            return False
        raise ValueError(f"Unknown overflow policy {self._overflow_policy}")

    async def put(self, item: T) -> bool:
        return self.put_nowait(item)

    async def get(self) -> T:
        while not self._queue:
            self._not_empty.clear()
            await self._not_empty.wait()
        item = self._queue.popleft()
        if not self._queue:
            self._not_empty.clear()
        return item
