"""Exception hierarchy for the access layer.

Quota exhaustion is deliberately absent: the rate limiter delays callers
instead of raising.
"""

from typing import Optional


class ApiWardenError(Exception):
    """Base class for all errors raised by apiwarden."""


class ConfigurationError(ApiWardenError):
    """Required configuration is missing or malformed."""


class CredentialError(ApiWardenError):
    """Credentials are missing or cannot perform the requested operation."""


class TransportError(ApiWardenError):
    """The request never produced an HTTP response (network failure, timeout)."""


class HttpStatusError(ApiWardenError):
    """The provider answered with a non-2xx status code."""

    def __init__(self, status_code: int, url: str, body_excerpt: str = ""):
        self.status_code = status_code
        self.url = url
        self.body_excerpt = body_excerpt
        message = f"HTTP {status_code} from {url}"
        if body_excerpt:
            message = f"{message}: {body_excerpt}"
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """429 and 5xx responses are worth another attempt."""
        return self.status_code == 429 or self.status_code >= 500


class DecodeError(ApiWardenError):
    """The response body is not JSON or does not match the expected shape."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(f"{message} ({url})" if url else message)


class UnitConversionError(ApiWardenError, ValueError):
    """A "<number> <unit>" string could not be converted to bytes."""
