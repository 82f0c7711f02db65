"""Tests for the in-memory command rate limiter."""

import asyncio

from valotracker.services.rate_limiter import SimpleRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSimpleRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = SimpleRateLimiter(clock=FakeClock())

        async def scenario():
            return [await limiter.is_allowed(1, "valo-profile", 2, 60) for _ in range(3)]

        assert asyncio.run(scenario()) == [True, True, False]

    def test_window_expiry_frees_slot(self):
        clock = FakeClock()
        limiter = SimpleRateLimiter(clock=clock)

        async def scenario():
            first = await limiter.is_allowed(1, "lmatch", 1, 60)
            blocked = await limiter.is_allowed(1, "lmatch", 1, 60)
            clock.now += 60
            after = await limiter.is_allowed(1, "lmatch", 1, 60)
            return first, blocked, after

        assert asyncio.run(scenario()) == (True, False, True)

    def test_users_and_commands_are_independent(self):
        limiter = SimpleRateLimiter(clock=FakeClock())

        async def scenario():
            return (
                await limiter.is_allowed(1, "lmatch", 1, 60),
                await limiter.is_allowed(2, "lmatch", 1, 60),
                await limiter.is_allowed(1, "valo-rank", 1, 60),
            )

        assert asyncio.run(scenario()) == (True, True, True)

    def test_invalid_parameters_are_rejected(self):
        limiter = SimpleRateLimiter(clock=FakeClock())
        assert asyncio.run(limiter.is_allowed(1, "lmatch", 0, 60)) is False
        assert asyncio.run(limiter.is_allowed(1, "lmatch", 1, 0)) is False
