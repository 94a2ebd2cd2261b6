import asyncio
import logging
import time

import pytest

from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter


def test_rejects_non_positive_budget():
    with pytest.raises(ValueError):
        RateLimiter(capacity=0)
    with pytest.raises(ValueError):
        RateLimiter(capacity=5, interval=0)


def test_capacity_bounds_requests_until_release():
    """The sixth acquire of a five-token window waits until a token comes back."""
    async def scenario():
        limiter = RateLimiter(capacity=5, interval=60)
        for _ in range(5):
            await limiter.acquire()
        assert limiter.remaining == 0

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(limiter.acquire(), timeout=0.05)
        # The timed-out caller took nothing
        assert limiter.remaining == 0

        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        assert not waiter.done()

        await limiter.release()
        await asyncio.wait_for(waiter, timeout=1)
        assert limiter.remaining == 0

    asyncio.run(scenario())


def test_cancelled_acquire_consumes_no_token():
    async def scenario():
        limiter = RateLimiter(capacity=1, interval=60)
        await limiter.acquire()

        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        await limiter.release()
        assert limiter.remaining == 1
        await asyncio.wait_for(limiter.acquire(), timeout=1)
        assert limiter.remaining == 0

    asyncio.run(scenario())


def test_budget_refills_after_interval():
    async def scenario():
        limiter = RateLimiter(capacity=2, interval=0.05)
        await limiter.acquire()
        await limiter.acquire()
        assert limiter.wait_time() > 0

        started = time.monotonic()
        await asyncio.wait_for(limiter.acquire(), timeout=1)
        return time.monotonic() - started, limiter.remaining

    elapsed, remaining = asyncio.run(scenario())
    assert elapsed >= 0.03
    assert remaining == 1


def test_release_never_exceeds_capacity():
    async def scenario():
        limiter = RateLimiter(capacity=3, interval=60)
        await limiter.release()
        return limiter.remaining

    assert asyncio.run(scenario()) == 3


def test_fixed_mode_ignores_provider_signals():
    async def scenario():
        limiter = RateLimiter(capacity=5, interval=60)
        await limiter.observe(0, time.time() + 60)
        await limiter.observe_headers({"X-Rate-Limit-Remaining": "0", "X-Rate-Limit-Reset": str(time.time() + 60)})
        return limiter

    limiter = asyncio.run(scenario())
    assert limiter.remaining == 5
    assert limiter.reset_at is None


def test_reset_aware_observe_realigns_window():
    async def scenario():
        limiter = RateLimiter(capacity=10, interval=60, reset_aware=True)
        reset_at = time.time() + 60
        await limiter.observe(0, reset_at)
        assert limiter.remaining == 0
        assert limiter.reset_at == reset_at

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(limiter.acquire(), timeout=0.05)

        # A fresh report wakes the waiter
        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        await limiter.observe(2, time.time() + 60)
        await asyncio.wait_for(waiter, timeout=1)
        assert limiter.remaining == 1

    asyncio.run(scenario())


def test_reset_aware_clamps_reported_remaining():
    async def scenario():
        limiter = RateLimiter(capacity=10, interval=60, reset_aware=True)
        await limiter.observe(50, time.time() + 30)
        high = limiter.remaining
        await limiter.observe(-3, time.time() + 30)
        return high, limiter.remaining

    assert asyncio.run(scenario()) == (10, 0)


def test_past_reset_time_refills_on_next_acquire():
    async def scenario():
        limiter = RateLimiter(capacity=4, interval=60, reset_aware=True)
        await limiter.observe(0, time.time() - 5)
        await asyncio.wait_for(limiter.acquire(), timeout=1)
        return limiter.remaining

    assert asyncio.run(scenario()) == 3


def test_observe_headers_is_case_insensitive():
    async def scenario():
        limiter = RateLimiter(capacity=600, interval=60, reset_aware=True)
        await limiter.observe_headers({
            "X-Rate-Limit-Remaining": "7",
            "x-rate-limit-reset": str(int(time.time()) + 30),
        })
        return limiter.remaining

    assert asyncio.run(scenario()) == 7


def test_observe_headers_warns_on_malformed_values(caplog):
    async def scenario():
        limiter = RateLimiter(capacity=600, interval=60, reset_aware=True)
        await limiter.observe_headers({"X-Rate-Limit-Remaining": "lots", "X-Rate-Limit-Reset": "soon"})
        await limiter.observe_headers({"Content-Type": "application/json"})
        return limiter.remaining

    with caplog.at_level(logging.WARNING):
        assert asyncio.run(scenario()) == 600
    assert "Malformed rate limit headers" in caplog.text


def test_limiter_survives_separate_event_loops():
    """One limiter per client, driven by a fresh asyncio.run per call."""
    limiter = RateLimiter(capacity=1, interval=0.05)

    async def two_acquires():
        await limiter.acquire()
        # Waits for the refill, so the condition is bound to this loop
        await asyncio.wait_for(limiter.acquire(), timeout=1)

    asyncio.run(two_acquires())
    asyncio.run(two_acquires())
    assert limiter.remaining == 0
