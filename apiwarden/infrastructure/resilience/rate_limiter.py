"""Implementation of the outbound request rate limiter.

Bounds the number of requests issued per quota window. In fixed-budget mode
the full capacity refills every ``interval`` seconds. In reset-aware mode the
limiter also accepts provider-reported quota state (requests remaining and
the reset time, e.g. from ``X-Rate-Limit-*`` response headers) and realigns
its window to it, trusting the provider over its own estimate.
"""

import asyncio
import logging
import time
from typing import Mapping, Optional

from apiwarden.domain.events.api_events import QuotaRealigned, RequestDeferred, dispatch_event

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 600 # Requests per window...
DEFAULT_INTERVAL_SECONDS = 60 # ...of one minute

# Okta-style quota headers; reset is an epoch timestamp in seconds
REMAINING_HEADER = "x-rate-limit-remaining"
RESET_HEADER = "x-rate-limit-reset"


class RateLimiter:
    """Token budget limiter shared by every request path of one client.

    ``acquire()`` suspends the caller until a token is available and never
    raises on exhaustion. A caller that needs an upper bound wraps it with
    ``asyncio.wait_for``; a cancelled acquire consumes no token.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        reset_aware: bool = False,
    ):
        """Initializes the rate limiter.

        Args:
            capacity: Maximum number of requests granted per window.
            interval: Length of the refill window in seconds.
            reset_aware: Whether provider quota signals override local timing.
        """
        if capacity <= 0 or interval <= 0:
            raise ValueError("Capacity and interval must be positive.")

        self.capacity = capacity
        self.interval = float(interval)
        self.reset_aware = reset_aware
        self.reset_at: Optional[float] = None # Wall-clock epoch of the provider's reset
        self._remaining = capacity
        self._window_ends = time.monotonic() + self.interval
        # Created on first use, and again whenever the running loop changes
        self._condition: Optional[asyncio.Condition] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        logger.info(
            f"RateLimiter initialized: {capacity} requests / {self.interval:g} seconds"
            f"{' (reset-aware)' if reset_aware else ''}"
        )

    def _get_condition(self) -> asyncio.Condition:
        loop = asyncio.get_running_loop()
        if self._condition is None or self._loop is not loop:
            self._condition = asyncio.Condition()
            self._loop = loop
        return self._condition

    @property
    def remaining(self) -> int:
        """Tokens currently available in this window."""
        return self._remaining

    def _refill(self, now: float) -> None:
        """Restores the full budget once the current window has ended."""
        if now >= self._window_ends:
            self._remaining = self.capacity
            self._window_ends = now + self.interval

    def wait_time(self) -> float:
        """Estimates the seconds until the next request could be granted."""
        now = time.monotonic()
        if self._remaining > 0 or now >= self._window_ends:
            return 0.0
        return self._window_ends - now

    async def acquire(self) -> None:
        """Waits until a request slot is available, then reserves it."""
        condition = self._get_condition()
        async with condition:
            while True:
                now = time.monotonic()
                self._refill(now)
                if self._remaining > 0:
                    self._remaining -= 1
                    logger.debug(f"Rate limit permission granted. Remaining: {self._remaining}")
                    return

                wait_time = max(0.0, self._window_ends - now)
                logger.debug(f"Rate limit reached. Waiting up to {wait_time:.2f} seconds.")
                dispatch_event(RequestDeferred(wait_time_seconds=wait_time, remaining=self._remaining))
                try:
                    # Woken early by release() or a provider realignment
                    await asyncio.wait_for(condition.wait(), timeout=wait_time)
                except asyncio.TimeoutError:
                    pass

    async def release(self) -> None:
        """Returns one reserved slot to the budget and wakes a waiter."""
        condition = self._get_condition()
        async with condition:
            if self._remaining < self.capacity:
                self._remaining += 1
            condition.notify()

    async def observe(self, remaining: int, reset_at: float) -> None:
        """Realigns the limiter to provider-reported quota state.

        Args:
            remaining: Requests the provider still allows in its window.
            reset_at: Wall-clock epoch seconds at which the provider resets.
        """
        if not self.reset_aware:
            logger.debug("Ignoring provider quota signal: limiter is not reset-aware.")
            return

        condition = self._get_condition()
        async with condition:
            reset_in = max(0.0, reset_at - time.time())
            self._remaining = max(0, min(self.capacity, remaining))
            self._window_ends = time.monotonic() + reset_in
            self.reset_at = reset_at
            logger.debug(f"Quota realigned: remaining={self._remaining}, reset in {reset_in:.2f}s")
            dispatch_event(QuotaRealigned(remaining=self._remaining, reset_in_seconds=reset_in))
            condition.notify_all()

    async def observe_headers(self, headers: Mapping[str, str]) -> None:
        """Feeds ``X-Rate-Limit-Remaining``/``X-Rate-Limit-Reset`` headers to ``observe``."""
        if not self.reset_aware:
            return
        normalized = {str(k).lower(): v for k, v in headers.items()}
        if REMAINING_HEADER not in normalized or RESET_HEADER not in normalized:
            return
        try:
            remaining = int(normalized[REMAINING_HEADER])
            reset_at = float(normalized[RESET_HEADER])
        except (TypeError, ValueError):
            logger.warning(
                f"Malformed rate limit headers: remaining={normalized[REMAINING_HEADER]!r}, "
                f"reset={normalized[RESET_HEADER]!r}"
            )
            return
        await self.observe(remaining, reset_at)
