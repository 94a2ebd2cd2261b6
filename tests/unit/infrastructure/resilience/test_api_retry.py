import asyncio
from unittest.mock import AsyncMock

import pytest

from apiwarden.core.exceptions import DecodeError, HttpStatusError, TransportError
from apiwarden.infrastructure.resilience.api_retry import ApiRetryService, MaxRetryError, is_retryable


def test_is_retryable():
    assert is_retryable(TransportError("reset by peer"))
    assert is_retryable(HttpStatusError(429, "https://x"))
    assert is_retryable(HttpStatusError(503, "https://x"))
    assert not is_retryable(HttpStatusError(404, "https://x"))
    assert not is_retryable(DecodeError("bad json"))
    assert not is_retryable(ValueError("nope"))


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        ApiRetryService(max_retries=-1)


def test_returns_first_success():
    func = AsyncMock(return_value="ok")
    service = ApiRetryService(max_retries=2, initial_backoff_s=0)

    assert asyncio.run(service.execute_with_retry(func, 1, key="v", operation_name="op")) == "ok"
    func.assert_awaited_once_with(1, key="v")


def test_retries_transient_errors():
    func = AsyncMock(side_effect=[TransportError("timeout"), HttpStatusError(502, "https://x"), "ok"])
    service = ApiRetryService(max_retries=2, initial_backoff_s=0)

    assert asyncio.run(service.execute_with_retry(func, operation_name="op")) == "ok"
    assert func.await_count == 3


def test_gives_up_after_max_retries():
    error = HttpStatusError(500, "https://x")
    func = AsyncMock(side_effect=error)
    service = ApiRetryService(max_retries=2, initial_backoff_s=0)

    with pytest.raises(MaxRetryError) as exc_info:
        asyncio.run(service.execute_with_retry(func, operation_name="op"))
    assert exc_info.value.attempts == 3
    assert exc_info.value.original_exception is error
    assert func.await_count == 3


def test_non_transient_error_is_not_retried():
    func = AsyncMock(side_effect=HttpStatusError(404, "https://x"))
    service = ApiRetryService(max_retries=3, initial_backoff_s=0)

    with pytest.raises(HttpStatusError):
        asyncio.run(service.execute_with_retry(func, operation_name="op"))
    func.assert_awaited_once()


def test_zero_retries_reraises_original():
    func = AsyncMock(side_effect=TransportError("down"))
    service = ApiRetryService(max_retries=0)

    with pytest.raises(TransportError):
        asyncio.run(service.execute_with_retry(func, operation_name="op"))
    func.assert_awaited_once()


def test_backoff_grows_exponentially(mocker):
    sleep = mocker.patch("apiwarden.infrastructure.resilience.api_retry.asyncio.sleep", new=AsyncMock())
    func = AsyncMock(side_effect=[TransportError("a"), TransportError("b"), "ok"])
    service = ApiRetryService(max_retries=2, initial_backoff_s=0.5, backoff_factor=3)

    asyncio.run(service.execute_with_retry(func, operation_name="op"))
    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.5]
