"""Bounded, best-effort notification channel for newly created proposals."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_CAPACITY = 10


class NotificationChannel(Generic[T]):
    """A bounded single-consumer queue with non-blocking, drop-on-full pushes.

    When the buffer is full the *new* item is dropped; producers never wait.
    Intended for exactly one long-lived consumer. Several consumers would
    race for individual items.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def dropped(self) -> int:
        """Number of items dropped because the buffer was full."""
        return self._dropped

    def qsize(self) -> int:
        return self._queue.qsize()

    def push(self, item: T) -> bool:
        """Enqueue *item* without blocking. Returns ``False`` if it was dropped."""
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self._dropped += 1
            return False
        return True

    async def get(self) -> T:
        """Wait for and return the next item."""
        return await self._queue.get()

    def get_nowait(self) -> T:
        """Return the next item or raise :class:`asyncio.QueueEmpty`."""
        return self._queue.get_nowait()

    async def wait(self, timeout: float) -> T | None:
        """Return the next item, or ``None`` if none arrives within *timeout* seconds."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except TimeoutError:
            return None

    def drain(self) -> list[T]:
        """Remove and return every buffered item."""
        items: list[T] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return items

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            yield await self._queue.get()
