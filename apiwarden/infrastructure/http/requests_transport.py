"""Blocking HTTP transport built on ``requests``.

Only moves bytes. Connection pooling comes from the shared Session; every
call carries a timeout so a stalled provider surfaces as a TransportError.
"""

import logging
from typing import Any, Mapping, Optional

import requests

from apiwarden.core.exceptions import TransportError
from apiwarden.domain.interfaces.transport import Transport, TransportResponse
from apiwarden.domain.models.common import Headers, HttpMethod, Url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class RequestsTransport(Transport):
    """Transport implementation backed by a ``requests.Session``."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(
        self,
        method: HttpMethod,
        url: Url,
        headers: Headers,
        body: Optional[bytes] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TransportResponse:
        logger.debug(f"{method} {url} params={dict(params or {})}")
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                data=body,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()
