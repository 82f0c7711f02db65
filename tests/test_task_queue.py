"""Tests for the paced bulk-fetch queue."""

import asyncio

import pytest

from valotracker.services.task_queue import PacedTaskQueue


class FakeClock:
    """Virtual monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_queue(clock, max_concurrency=1, min_interval=1.0):
    return PacedTaskQueue(max_concurrency, min_interval, sleep=clock.sleep, clock=clock)


class TestPacedTaskQueue:

    def test_results_in_submission_order(self):
        clock = FakeClock()
        queue = make_queue(clock)
        jobs = [lambda i=i: asyncio.sleep(0, result=i * 10) for i in range(4)]
        assert asyncio.run(queue.run(jobs)) == [0, 10, 20, 30]

    def test_starts_are_spaced_by_min_interval(self):
        clock = FakeClock()
        queue = make_queue(clock, min_interval=1.0)
        started = []

        async def job():
            started.append(clock.now)

        asyncio.run(queue.run([job, job, job]))
        assert started == [0.0, 1.0, 2.0]

    def test_spacing_holds_with_concurrency(self):
        clock = FakeClock()
        queue = make_queue(clock, max_concurrency=3, min_interval=0.5)
        started = []

        async def job():
            started.append(clock.now)
            await asyncio.sleep(0)

        asyncio.run(queue.run([job] * 5))
        gaps = [b - a for a, b in zip(started, started[1:])]
        assert all(gap >= 0.5 for gap in gaps)

    def test_failing_job_does_not_abort_siblings(self):
        clock = FakeClock()
        queue = make_queue(clock, min_interval=0)

        async def boom():
            raise RuntimeError("upstream exploded")

        async def ok():
            return "ok"

        results = asyncio.run(queue.run([ok, boom, ok]))
        assert results[0] == "ok"
        assert isinstance(results[1], RuntimeError)
        assert results[2] == "ok"

    def test_empty_batch(self):
        assert asyncio.run(make_queue(FakeClock()).run([])) == []

    def test_rejects_invalid_limits(self):
        with pytest.raises(ValueError):
            PacedTaskQueue(max_concurrency=0)
        with pytest.raises(ValueError):
            PacedTaskQueue(min_interval=-1)
