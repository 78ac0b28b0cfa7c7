"""Asyncio coordination primitives.

- SingleFlight: collapses concurrent calls into one shared task
- KeyedLock: mutual exclusion per key, with idle locks discarded

Usage:
    flight = SingleFlight()
    token = await flight.do(fetch_token)   # concurrent callers share one fetch

    locks = KeyedLock()
    async with locks.hold(order_id):
        ...
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar


T = TypeVar("T")


class SingleFlight(Generic[T]):
    """A slot that is either idle or holds one in-flight task.

    Callers arriving while the task runs await the same task and observe the
    same result or exception. The slot is released as soon as the task
    finishes, so the next call after a failure starts a fresh attempt.
    """

    def __init__(self) -> None:
        self._task: Optional["asyncio.Task[T]"] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def do(self, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._task
        if task is None:
            task = asyncio.ensure_future(fn())
            self._task = task
            task.add_done_callback(self._release)
        # Shield so one cancelled waiter does not cancel the shared call.
        return await asyncio.shield(task)

    def _release(self, task: "asyncio.Task[T]") -> None:
        if self._task is task:
            self._task = None
        # Mark the exception as retrieved; waiters re-raise it themselves.
        if not task.cancelled():
            task.exception()


class KeyedLock:
    """Per-key asyncio locks."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
