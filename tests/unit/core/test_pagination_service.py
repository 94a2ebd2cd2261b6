import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import FakeTransport, datatables_responder, json_response
from apiwarden.core.exceptions import HttpStatusError
from apiwarden.core.services.pagination_service import PaginationService
from apiwarden.domain.interfaces.transport import TransportResponse
from apiwarden.domain.models.page import Column, PageRequest
from apiwarden.infrastructure.cache.caching_service import ResponseCache
from apiwarden.infrastructure.http.request_executor import RequestExecutor
from apiwarden.infrastructure.resilience.api_retry import ApiRetryService, MaxRetryError
from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter

URL = "https://backup.test/customer-services/users"


def records(n):
    return [{"name": f"user{i}", "email": f"user{i}@example.com"} for i in range(n)]


def make_service(transport, retry_service=None, capacity=100):
    executor = RequestExecutor(transport=transport, rate_limiter=RateLimiter(capacity=capacity, interval=60))
    return PaginationService(executor, ResponseCache(), retry_service)


def page_request(length=75):
    return PageRequest(columns=[Column(data="name"), Column(data="email")], length=length, extra={"appType": "GoogleDrive"})


def windows(transport):
    return [(c["body"]["start"], c["body"]["length"]) for c in transport.calls]


def test_fetches_every_page_with_shrinking_last_window():
    transport = FakeTransport(datatables_responder(records(180)))
    service = make_service(transport)

    result = asyncio.run(service.fetch_all("users", URL, page_request(), lambda r: r["email"]))

    assert windows(transport) == [(0, 75), (75, 75), (150, 30)]
    assert len(result) == 180
    assert result.records_total == 180
    assert result.records[0] == "user0@example.com"
    assert result.records[-1] == "user179@example.com"
    assert all(c["body"]["appType"] == "GoogleDrive" for c in transport.calls)


def test_exact_multiple_of_page_size():
    transport = FakeTransport(datatables_responder(records(150)))
    service = make_service(transport)

    result = asyncio.run(service.fetch_all("users", URL, page_request(), dict))

    assert windows(transport) == [(0, 75), (75, 75)]
    assert len(result) == 150


def test_zero_total_issues_exactly_one_call():
    transport = FakeTransport(datatables_responder([]))
    service = make_service(transport)

    result = asyncio.run(service.fetch_all("users", URL, page_request(), dict))

    assert len(transport.calls) == 1
    assert len(result) == 0
    assert result.records_total == 0


def test_short_pages_do_not_stop_pagination():
    """The provider total, not the page size, decides when to stop."""
    transport = FakeTransport(datatables_responder(records(30), page_cap=4))
    service = make_service(transport)

    result = asyncio.run(service.fetch_all("users", URL, page_request(length=10), dict))

    assert windows(transport) == [(0, 10), (10, 10), (20, 10)]
    assert len(result) == 12


def test_second_call_is_served_from_cache():
    transport = FakeTransport(datatables_responder(records(80)))
    service = make_service(transport)

    async def scenario():
        first = await service.fetch_all("users", URL, page_request(), dict)
        second = await service.fetch_all("users", URL, page_request(), dict)
        return first, second

    first, second = asyncio.run(scenario())
    assert second is first
    assert len(transport.calls) == 2


def test_failed_run_is_not_cached():
    def respond(method, url, headers, body, params):
        if body["start"] == 75:
            return TransportResponse(status_code=404, body=b"gone")
        return datatables_responder(records(180))(method, url, headers, body, params)

    transport = FakeTransport(respond)
    service = make_service(transport)

    async def scenario():
        with pytest.raises(HttpStatusError):
            await service.fetch_all("users", URL, page_request(), dict)
        return await service.cache_service.get("users")

    assert asyncio.run(scenario()) == (None, False)
    assert len(transport.calls) == 2


def test_transient_page_failure_is_retried():
    served = datatables_responder(records(100))
    failures = {"left": 1}

    def respond(method, url, headers, body, params):
        if body["start"] == 75 and failures["left"]:
            failures["left"] -= 1
            return TransportResponse(status_code=503)
        return served(method, url, headers, body, params)

    transport = FakeTransport(respond)
    service = make_service(transport, ApiRetryService(max_retries=2, initial_backoff_s=0))

    result = asyncio.run(service.fetch_all("users", URL, page_request(), dict))

    assert windows(transport) == [(0, 75), (75, 25), (75, 25)]
    assert len(result) == 100
    # Every attempt was charged to the limiter
    assert service.executor.rate_limiter.remaining == 97


def test_exhausted_retries_surface_max_retry_error():
    transport = FakeTransport(lambda **_: TransportResponse(status_code=500))
    service = make_service(transport, ApiRetryService(max_retries=1, initial_backoff_s=0))

    with pytest.raises(MaxRetryError):
        asyncio.run(service.fetch_all("users", URL, page_request(), dict))
    assert len(transport.calls) == 2


def test_post_process_runs_before_caching():
    transport = FakeTransport(datatables_responder(records(3)))
    service = make_service(transport)
    post_process = AsyncMock()

    async def scenario():
        result = await service.fetch_all("users", URL, page_request(), dict, post_process=post_process)
        await service.fetch_all("users", URL, page_request(), dict, post_process=post_process)
        return result

    result = asyncio.run(scenario())
    post_process.assert_awaited_once_with(result)


def test_total_change_mid_run_uses_latest_total(caplog):
    totals = iter([200, 100])

    def respond(method, url, headers, body, params):
        total = next(totals)
        return json_response({"recordsTotal": total, "recordsFiltered": total, "data": [{}] * body["length"]})

    transport = FakeTransport(respond)
    service = make_service(transport)

    result = asyncio.run(service.fetch_all("users", URL, page_request(length=50), dict))

    assert windows(transport) == [(0, 50), (50, 50)]
    assert result.records_total == 100
    assert "total changed" in caplog.text


def test_non_positive_page_length_rejected():
    service = make_service(FakeTransport(lambda **_: json_response({})))
    with pytest.raises(ValueError):
        asyncio.run(service.fetch_all("users", URL, page_request(length=0), dict))


def test_cancelled_run_is_not_cached():
    transport = FakeTransport(datatables_responder(records(180)))
    # One token: the second page waits on the limiter until the caller gives up
    service = make_service(transport, capacity=1)

    async def scenario():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(service.fetch_all("users", URL, page_request(), dict), timeout=0.1)
        return await service.cache_service.get("users")

    assert asyncio.run(scenario()) == (None, False)
    assert len(transport.calls) == 1
