"""Issues exactly one rate-limited HTTP request and decodes the JSON reply.

Steps per call: acquire a limiter token, merge credential headers, send the
request through the blocking transport off the event loop, feed quota
headers back to the limiter, then check the status and decode. There are no
hidden retries in this layer; see ``ApiRetryService`` for that.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Mapping, Optional

from apiwarden.core.exceptions import DecodeError, HttpStatusError, TransportError
from apiwarden.domain.events.api_events import RequestFailed, RequestInitiated, RequestSucceeded, dispatch_event
from apiwarden.domain.interfaces.credentials import Credentialer
from apiwarden.domain.interfaces.transport import Transport
from apiwarden.domain.models.common import JSON_CONTENT, Headers, HttpMethod, Url
from apiwarden.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

BODY_EXCERPT_CHARS = 200

DEFAULT_HEADERS: Headers = {
    "Accept": JSON_CONTENT,
    "Content-Type": JSON_CONTENT,
}


class RequestExecutor:
    """Single-request executor shared by the pagination driver and wrappers."""

    def __init__(
        self,
        transport: Transport,
        rate_limiter: RateLimiter,
        credentialer: Optional[Credentialer] = None,
        headers: Optional[Headers] = None,
    ):
        self.transport = transport
        self.rate_limiter = rate_limiter
        self.credentialer = credentialer
        self.default_headers: Headers = dict(DEFAULT_HEADERS)
        if headers:
            self.default_headers.update(headers)

    def _build_headers(self) -> Headers:
        request_headers = dict(self.default_headers)
        if self.credentialer is not None:
            request_headers.update(self.credentialer.headers())
        return request_headers

    def _fail(self, method: str, url: str, error: Exception, status_code: Optional[int] = None) -> None:
        logger.warning(f"{method} {url} failed: {error}")
        dispatch_event(RequestFailed(
            method=method,
            url=url,
            error_type=type(error).__name__,
            error_message=str(error),
            status_code=status_code,
        ))

    async def execute(
        self,
        method: HttpMethod,
        url: Url,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Performs one request and returns the decoded response.

        Args:
            method: HTTP method.
            url: Fully built URL.
            body: JSON-serialisable request body, or None.
            params: Query string parameters.
            decoder: Turns the parsed JSON into a typed result.

        Raises:
            TransportError: The request did not produce a response.
            HttpStatusError: The response status was not 2xx.
            DecodeError: The body was not JSON or did not fit ``decoder``.
        """
        await self.rate_limiter.acquire()

        payload = None if body is None else json.dumps(body).encode("utf-8")
        dispatch_event(RequestInitiated(method=method, url=url))
        start_time = time.perf_counter()
        try:
            response = await asyncio.to_thread(
                self.transport.send, method, url, self._build_headers(), payload, params
            )
        except TransportError as e:
            self._fail(method, url, e)
            raise
        latency_ms = (time.perf_counter() - start_time) * 1000

        await self.rate_limiter.observe_headers(response.headers)

        if not response.ok:
            excerpt = response.body[:BODY_EXCERPT_CHARS].decode("utf-8", errors="replace")
            error = HttpStatusError(response.status_code, url, excerpt)
            self._fail(method, url, error, response.status_code)
            raise error

        try:
            data = json.loads(response.body) if response.body else None
        except (ValueError, UnicodeDecodeError) as e:
            error = DecodeError(f"Response is not valid JSON: {e}", url)
            self._fail(method, url, error, response.status_code)
            raise error from e

        if decoder is not None:
            try:
                data = decoder(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                error = DecodeError(f"Unexpected response shape: {type(e).__name__}: {e}", url)
                self._fail(method, url, error, response.status_code)
                raise error from e

        logger.debug(f"{method} {url} -> {response.status_code} in {latency_ms:.2f}ms")
        dispatch_event(RequestSucceeded(
            method=method, url=url, status_code=response.status_code, latency_ms=latency_ms
        ))
        return data

    def close(self) -> None:
        self.transport.close()
