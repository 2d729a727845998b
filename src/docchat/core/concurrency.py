"""Coroutine coordination primitives: single-flight calls and per-key locks."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Run at most one in-flight computation per key.

    Concurrent callers for the same key share the first caller's task and
    receive its result or its exception.  The task is shielded, so a caller
    that gets cancelled does not cancel the computation the others wait on.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._finish(k, t))
        else:
            log.debug("Joining in-flight computation for %s", key)
        return await asyncio.shield(task)

    def _finish(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Consume the exception so an unobserved failure is not reported twice.
        if not task.cancelled():
            task.exception()


class KeyedLock:
    """A lazily created ``asyncio.Lock`` per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]
