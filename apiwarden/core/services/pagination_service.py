"""Exhaustive offset/length pagination.

Drives a paginated endpoint to exhaustion, one page at a time, and caches
the complete aggregate. The stopping rule depends only on the next offset
versus the provider-reported total, never on how many records a page
happened to contain.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Optional

from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.models.common import CacheKey, HttpMethod, Url
from apiwarden.domain.models.page import AggregateResult, PageRequest, PageResponse, PageWindow, RecordDecoder
from apiwarden.infrastructure.http.request_executor import RequestExecutor
from apiwarden.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

PostProcessor = Callable[[AggregateResult], Awaitable[Any]]


class PaginationService:
    """Fetches every record of a paginated resource, with a cache in front."""

    def __init__(
        self,
        executor: RequestExecutor,
        cache_service: CacheService,
        retry_service: Optional[ApiRetryService] = None,
    ):
        """Initializes the PaginationService.

        Args:
            executor: Issues each page request (one network call per attempt).
            cache_service: Holds completed aggregates.
            retry_service: Optional per-page retry policy for transient errors.
        """
        self.executor = executor
        self.cache_service = cache_service
        self.retry_service = retry_service

    async def _fetch_page(
        self,
        method: HttpMethod,
        url: Url,
        request: PageRequest,
        window: PageWindow,
        record_decoder: RecordDecoder,
    ) -> PageResponse:
        payload = request.to_payload(window)
        decoder = functools.partial(PageResponse.from_dict, record_decoder=record_decoder)
        logger.debug(f"Requesting page start={window.start} length={window.length} from {url}")
        if self.retry_service is None:
            return await self.executor.execute(method, url, payload, decoder=decoder)
        return await self.retry_service.execute_with_retry(
            self.executor.execute,
            method,
            url,
            payload,
            decoder=decoder,
            operation_name=f"{method} {url} [start={window.start}]",
        )

    async def fetch_all(
        self,
        cache_key: CacheKey,
        url: Url,
        request: PageRequest,
        record_decoder: RecordDecoder,
        ttl: Optional[float] = None,
        method: HttpMethod = HttpMethod("POST"),
        post_process: Optional[PostProcessor] = None,
    ) -> AggregateResult:
        """Returns every record of the resource, from cache when possible.

        Args:
            cache_key: Identity under which the complete aggregate is cached.
            url: Endpoint that accepts the page request envelope.
            request: Envelope template; its start/length form the first window.
            record_decoder: Turns one raw record into a typed record.
            ttl: Cache lifetime in seconds (cache default if None).
            method: HTTP method used for every page.
            post_process: Awaited on the finished aggregate before caching,
                e.g. unit conversion.

        Raises:
            ValueError: If the initial page length is not positive.
            ApiWardenError: If any page fails. Nothing is cached in that case.
        """
        cached, found = await self.cache_service.get(cache_key)
        if found:
            logger.info(f"Serving {len(cached)} records for {cache_key} from cache")
            return cached

        if request.length <= 0:
            raise ValueError(f"Page length must be positive, got {request.length}")

        window = request.initial_window()
        aggregate = AggregateResult()
        pages = 0

        while True:
            page = await self._fetch_page(method, url, request, window, record_decoder)
            pages += 1
            aggregate.records.extend(page.data)

            if window.total_known is not None and page.records_total != window.total_known:
                # Totals are assumed stable for one run; use the newest value
                logger.warning(
                    f"Provider total changed mid-run for {url}: "
                    f"{window.total_known} -> {page.records_total}"
                )
            window.total_known = page.records_total
            aggregate.records_total = page.records_total
            aggregate.records_filtered = page.records_filtered
            aggregate.draw = page.draw

            next_start = window.start + window.length
            remaining = window.total_known - next_start
            if remaining <= 0:
                break
            window.start = next_start
            window.length = min(window.length, remaining)

        logger.info(f"Fetched {len(aggregate)} of {aggregate.records_total} records from {url} in {pages} page(s)")

        if post_process is not None:
            await post_process(aggregate)

        await self.cache_service.set(cache_key, aggregate, ttl)
        return aggregate
