"""Interface for the wire-level HTTP transport.

The transport only moves bytes: it sends one request and hands back the
status code, raw body and response headers. Decoding, rate limiting and
credentials belong to the request executor.
"""

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..models.common import Headers, HttpMethod, Url


@dataclass
class TransportResponse:
    """Raw result of a single HTTP exchange."""
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(abc.ABC):
    """Abstract Base Class for a blocking HTTP client."""

    @abc.abstractmethod
    def send(
        self,
        method: HttpMethod,
        url: Url,
        headers: Headers,
        body: Optional[bytes] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TransportResponse:
        """Performs exactly one HTTP request.

        Raises:
            TransportError: On network failures or timeouts.
        """
        pass

    def close(self) -> None:
        """Releases pooled connections. Optional for implementations."""
        return None
