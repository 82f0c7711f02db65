"""
Paced task queue for bulk upstream calls.

Runs coroutine factories with bounded concurrency and a minimum spacing
between successive task starts, which caps the aggregate request rate at
``1 / min_interval`` regardless of how many tasks are in flight.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Sequence

logger = logging.getLogger(__name__)


class PacedTaskQueue:
    """Bounded-concurrency runner with a per-task start delay."""

    def __init__(self, max_concurrency: int = 1, min_interval: float = 1.0, *,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.max_concurrency = max_concurrency
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock

    async def run(self, jobs: Sequence[Callable[[], Awaitable[Any]]]) -> List[Any]:
        """
        Run every job and return results in submission order.

        A job that raises yields its exception object in the result list; it
        never cancels or aborts its siblings.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        slot_lock = asyncio.Lock()
        next_slot = [None]

        async def wait_for_slot():
            async with slot_lock:
                now = self._clock()
                if next_slot[0] is not None and next_slot[0] > now:
                    await self._sleep(next_slot[0] - now)
                    now = next_slot[0]
                next_slot[0] = now + self.min_interval

        async def run_one(index: int, job):
            async with semaphore:
                await wait_for_slot()
                try:
                    return await job()
                except Exception as e:
                    logger.warning(f"Queued task {index} failed: {e}", exc_info=True)
                    return e

        return list(await asyncio.gather(*(run_one(i, job) for i, job in enumerate(jobs))))
