"""Bounded-concurrency fan-out for per-chunk remote calls."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyLimiter:
    """Admit at most ``limit`` coroutines at once, in FIFO order.

    The in-flight counter is only touched from the event loop: it is
    incremented when a task is admitted and decremented when it settles. A
    freed slot is handed directly to the oldest waiter.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1")
        self.limit = limit
        self._running = 0
        self._waiters: deque[asyncio.Future] = deque()

    @property
    def in_flight(self) -> int:
        return self._running

    @property
    def pending(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def _acquire(self) -> None:
        if self._running < self.limit and not self.pending:
            self._running += 1
            return
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if not waiter.cancelled():
                # Slot was handed over just before cancellation; pass it on.
                self._release()
            raise

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._running -= 1

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        await self._acquire()
        try:
            return await fn()
        finally:
            self._release()


async def dispatch(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
    *,
    on_progress: Callable[[int, int, int], None] | None = None,
) -> list[tuple[int, R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` in flight.

    Returns ``(position, result)`` pairs in completion order. The first
    failure cancels everything still queued or running and is re-raised;
    no partial results are returned.
    """
    limiter = ConcurrencyLimiter(limit)
    total = len(items)
    settled: list[tuple[int, R]] = []
    aborted = False

    async def _call(item: T) -> R:
        nonlocal aborted
        if aborted:
            # A slot freed by the failing task must not start new work.
            raise asyncio.CancelledError()
        try:
            return await worker(item)
        except BaseException:
            aborted = True
            raise

    async def _run(position: int, item: T) -> None:
        result = await limiter.run(lambda: _call(item))
        settled.append((position, result))
        if on_progress is not None:
            on_progress(len(settled), total, position)

    tasks = [asyncio.ensure_future(_run(position, item)) for position, item in enumerate(items)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return settled


__all__ = ["ConcurrencyLimiter", "dispatch"]
