"""
Bounded-concurrency task pool for asyncio.

At most `limit` workers run at once; whenever one finishes the next queued
item starts. Results are produced in completion order.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Set, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_pool(limit: int, items: Iterable[T], worker: Callable[[T], Awaitable[R]]) -> AsyncIterator[R]:
    """Yield worker(item) results as they complete, never more than `limit` in flight."""
    if limit < 1:
        raise ValueError(f"Concurrency limit must be at least 1, got {limit}")

    pending: Set[asyncio.Future] = set()
    try:
        for item in items:
            pending.add(asyncio.ensure_future(worker(item)))
            if len(pending) >= limit:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    yield task.result()

        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                yield task.result()
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def run_all(limit: int, items: Iterable[T], worker: Callable[[T], Awaitable[R]]) -> List[R]:
    """Run the pool to exhaustion and collect results in completion order."""
    results = []
    async for result in run_pool(limit, items, worker):
        results.append(result)
    return results
