"""Tests for single-flight coalescing and per-key locks."""

from __future__ import annotations

import asyncio

import pytest

from docchat.core.concurrency import KeyedLock, SingleFlight


class TestSingleFlight:
    async def test_concurrent_callers_share_one_computation(self) -> None:
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def compute() -> str:
            nonlocal calls
            calls += 1
            await release.wait()
            return "value"

        waiters = [asyncio.create_task(flight.do("k", compute)) for _ in range(10)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results == ["value"] * 10
        assert len(flight) == 0

    async def test_failure_reaches_every_waiter(self) -> None:
        flight = SingleFlight()
        release = asyncio.Event()

        async def compute() -> str:
            await release.wait()
            raise RuntimeError("boom")

        waiters = [asyncio.create_task(flight.do("k", compute)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert len(flight) == 0

    async def test_next_call_after_failure_recomputes(self) -> None:
        flight = SingleFlight()
        attempts = 0

        async def flaky() -> int:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("first attempt fails")
            return attempts

        with pytest.raises(RuntimeError):
            await flight.do("k", flaky)
        assert await flight.do("k", flaky) == 2

    async def test_distinct_keys_run_independently(self) -> None:
        flight = SingleFlight()

        async def value(v: int) -> int:
            await asyncio.sleep(0)
            return v

        a, b = await asyncio.gather(flight.do("a", lambda: value(1)), flight.do("b", lambda: value(2)))
        assert (a, b) == (1, 2)

    async def test_cancelled_waiter_does_not_cancel_the_flight(self) -> None:
        flight = SingleFlight()
        release = asyncio.Event()

        async def compute() -> str:
            await release.wait()
            return "done"

        first = asyncio.create_task(flight.do("k", compute))
        second = asyncio.create_task(flight.do("k", compute))
        await asyncio.sleep(0)
        first.cancel()
        release.set()

        assert await second == "done"
        with pytest.raises(asyncio.CancelledError):
            await first


class TestKeyedLock:
    async def test_serializes_same_key(self) -> None:
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("conv"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    async def test_different_keys_do_not_block(self) -> None:
        locks = KeyedLock()
        inside = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("a"):
                inside.set()
                await asyncio.sleep(0.05)

        task = asyncio.create_task(holder())
        await inside.wait()
        async with locks.hold("b"):
            assert not task.done()
        await task

    async def test_locks_are_released_after_use(self) -> None:
        locks = KeyedLock()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0
