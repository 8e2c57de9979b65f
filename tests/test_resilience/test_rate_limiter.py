"""Tests for the sliding-window rate limiter."""

import asyncio

import pytest

from pricefuse.observability import RATE_LIMIT_WAIT
from pricefuse.resilience import SlidingWindowRateLimiter


def make_limiter(clock, fake_sleep, events, max_requests=3, window_seconds=60.0):
    return SlidingWindowRateLimiter(
        max_requests=max_requests,
        window_seconds=window_seconds,
        name="Test",
        clock=clock,
        sleep=fake_sleep,
        sink=events,
    )


class TestAdmission:
    """Calls under the ceiling pass straight through."""

    @pytest.mark.asyncio
    async def test_allows_requests_under_limit(self, clock, fake_sleep, events):
        limiter = make_limiter(clock, fake_sleep, events)

        for _ in range(3):
            assert await limiter.acquire() == 0.0

        assert fake_sleep.calls == []
        assert limiter.in_window == 3
        assert RATE_LIMIT_WAIT not in events.names()

    @pytest.mark.asyncio
    async def test_waits_until_oldest_call_leaves_window(self, clock, fake_sleep, events):
        """The call past the ceiling waits for the oldest timestamp to expire."""
        limiter = make_limiter(clock, fake_sleep, events)
        for _ in range(3):
            await limiter.acquire()

        waited = await limiter.acquire()

        assert waited == pytest.approx(60.0)
        assert fake_sleep.calls == [pytest.approx(60.0)]
        assert limiter.in_window == 1

        wait_events = events.of(RATE_LIMIT_WAIT)
        assert len(wait_events) == 1
        assert wait_events[0]["provider"] == "Test"
        assert wait_events[0]["in_window"] == 3

    @pytest.mark.asyncio
    async def test_window_slides(self, clock, fake_sleep, events):
        """Only timestamps inside the trailing window count."""
        limiter = make_limiter(clock, fake_sleep, events, max_requests=2)

        await limiter.acquire()      # t=1000
        clock.advance(30)
        await limiter.acquire()      # t=1030
        clock.advance(30)            # t=1060: first call is exactly one window old

        assert await limiter.acquire() == 0.0
        assert fake_sleep.calls == []

    @pytest.mark.asyncio
    async def test_partial_wait(self, clock, fake_sleep, events):
        limiter = make_limiter(clock, fake_sleep, events, max_requests=1)

        await limiter.acquire()
        clock.advance(45)
        waited = await limiter.acquire()

        assert waited == pytest.approx(15.0)

    @pytest.mark.asyncio
    async def test_concurrent_waiters_never_exceed_ceiling(self, clock, fake_sleep, events):
        limiter = make_limiter(clock, fake_sleep, events, max_requests=2)

        waits = await asyncio.gather(*(limiter.acquire() for _ in range(4)))

        assert sorted(waits) == [0.0, 0.0, 0.0, pytest.approx(60.0)]
        assert limiter.in_window == 2


class TestValidation:
    """Constructor argument checks."""

    def test_rejects_non_positive_ceiling(self):
        with pytest.raises(ValueError, match="max_requests"):
            SlidingWindowRateLimiter(max_requests=0)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError, match="window_seconds"):
            SlidingWindowRateLimiter(max_requests=5, window_seconds=0)
