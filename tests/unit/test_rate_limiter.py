"""
Unit Tests - Rate Limiter
"""
import asyncio

import pytest

from storefront.serving.rate_limit import LOGIN_MAX_ATTEMPTS, LOGIN_WINDOW_SECONDS, RateLimiter


class TestFixedWindow:
    """Tests for RateLimiter.hit"""

    async def test_fourth_request_in_window_is_rejected(self, clock):
        limiter = RateLimiter(max_requests=3, window_seconds=1, clock=clock)

        decisions = []
        for _ in range(4):
            decisions.append(await limiter.hit("203.0.113.7"))
            clock.advance(0.1)

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert decisions[3].count == 4
        assert decisions[3].retry_after > 0

    async def test_window_resets_after_it_elapses(self, clock):
        limiter = RateLimiter(max_requests=3, window_seconds=1, clock=clock)
        for _ in range(4):
            await limiter.hit("203.0.113.7")

        clock.advance(1.5)
        decision = await limiter.hit("203.0.113.7")

        assert decision.allowed
        assert decision.count == 1
        assert decision.remaining == 2

    async def test_clients_are_counted_separately(self, clock):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)

        assert (await limiter.hit("10.0.0.1")).allowed
        assert (await limiter.hit("10.0.0.2")).allowed
        assert not (await limiter.hit("10.0.0.1")).allowed
        assert len(limiter) == 2

    async def test_burst_across_boundary_admits_twice_the_limit(self, clock):
        """Fixed window: the reset is wholesale at the first late request"""
        limiter = RateLimiter(max_requests=2, window_seconds=10, clock=clock)
        assert (await limiter.hit("a")).allowed
        clock.advance(9.9)
        assert (await limiter.hit("a")).allowed
        clock.advance(0.2)
        assert (await limiter.hit("a")).allowed
        assert (await limiter.hit("a")).allowed
        assert not (await limiter.hit("a")).allowed

    async def test_retry_after_counts_down(self, clock):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        await limiter.hit("a")
        clock.advance(20)

        decision = await limiter.hit("a")

        assert not decision.allowed
        assert decision.retry_after == pytest.approx(40)
        assert decision.retry_after_seconds == 40
        assert decision.retry_after_minutes == 1

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0, window_seconds=1)
        with pytest.raises(ValueError):
            RateLimiter(max_requests=1, window_seconds=0)


class TestLoginLimiter:
    """Tests for the login preset"""

    async def test_five_attempts_per_fifteen_minutes(self, clock):
        limiter = RateLimiter.for_login(clock=clock)
        assert limiter.max_requests == LOGIN_MAX_ATTEMPTS == 5
        assert limiter.window_seconds == LOGIN_WINDOW_SECONDS == 900

        for _ in range(5):
            assert (await limiter.hit("198.51.100.1")).allowed
        decision = await limiter.hit("198.51.100.1")

        assert not decision.allowed
        assert decision.retry_after_minutes == 15

    async def test_independent_from_global_limiter(self, clock):
        global_limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        login_limiter = RateLimiter.for_login(clock=clock)

        await global_limiter.hit("a")
        assert not (await global_limiter.hit("a")).allowed
        assert (await login_limiter.hit("a")).allowed


class TestSweep:
    """Tests for expiry of idle visitors"""

    async def test_sweep_removes_only_expired_visitors(self, clock):
        limiter = RateLimiter(max_requests=5, window_seconds=10, clock=clock)
        await limiter.hit("old")
        clock.advance(8)
        await limiter.hit("recent")
        clock.advance(5)

        removed = await limiter.sweep()

        assert removed == 1
        assert len(limiter) == 1

    async def test_start_is_idempotent_and_stop_cancels(self):
        limiter = RateLimiter(max_requests=5, window_seconds=60)

        await limiter.start()
        task = limiter._sweep_task
        await limiter.start()

        assert limiter.running
        assert limiter._sweep_task is task

        await limiter.stop()

        assert not limiter.running
        assert task.cancelled()

    async def test_background_sweep_runs_every_window(self):
        limiter = RateLimiter(max_requests=5, window_seconds=0.05)
        await limiter.hit("a")

        await limiter.start()
        try:
            await asyncio.sleep(0.3)
        finally:
            await limiter.stop()

        assert len(limiter) == 0

    async def test_stop_without_start(self):
        limiter = RateLimiter(max_requests=5, window_seconds=60)
        await limiter.stop()
        assert not limiter.running
