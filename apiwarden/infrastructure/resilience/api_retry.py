"""Service for retrying a single page request.

The request executor never retries, so that every network call is charged to
the rate limiter exactly once. Retries are decided here, one level up: each
attempt goes back through the executor and acquires its own token.
Implements exponential backoff for transient failures (network errors, 429
and 5xx responses). Anything else propagates on the first attempt.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from apiwarden.core.exceptions import ApiWardenError, HttpStatusError, TransportError
from apiwarden.domain.events.api_events import RetryScheduled, dispatch_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_BACKOFF_SECONDS = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0


class MaxRetryError(ApiWardenError):
    """Exception raised when max retries are exceeded."""
    def __init__(self, original_exception: Exception, attempts: int):
        self.original_exception = original_exception
        self.attempts = attempts
        super().__init__(f"Giving up after {attempts} attempts. Last error: {original_exception}")


def is_retryable(error: BaseException) -> bool:
    """Transport failures, 429 and 5xx responses are transient."""
    if isinstance(error, TransportError):
        return True
    if isinstance(error, HttpStatusError):
        return error.retryable
    return False


class ApiRetryService:
    """Runs an async operation, retrying transient failures with backoff."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_SECONDS,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    ):
        """Initializes the ApiRetryService.

        Args:
            max_retries: Maximum number of retry attempts after the first call.
            initial_backoff_s: Initial delay in seconds for the first retry.
            backoff_factor: Multiplier for the backoff delay (e.g., 2 for exponential).
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative.")
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        operation_name: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Executes ``func`` and retries it on transient errors.

        Raises:
            MaxRetryError: If every attempt failed with a transient error.
            Exception: Non-transient errors, unchanged, on the attempt that hit them.
        """
        operation = operation_name or getattr(func, "__name__", "operation")
        backoff = self.initial_backoff_s

        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not is_retryable(e):
                    raise
                if self.max_retries == 0:
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) reached for {operation}. Last error: {e}")
                    raise MaxRetryError(e, attempt + 1) from e

                logger.warning(
                    f"Transient error in {operation} on attempt {attempt + 1}/{self.max_retries + 1}: "
                    f"{type(e).__name__}: {e}. Waiting {backoff:.2f}s..."
                )
                dispatch_event(RetryScheduled(operation=operation, attempt_number=attempt + 1, delay_seconds=backoff))
                await asyncio.sleep(backoff)
                backoff *= self.backoff_factor
