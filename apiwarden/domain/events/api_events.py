"""Domain Events related to API calls and quota handling.

Examples include events for when calls are deferred, retried, fail, succeed,
or when the limiter realigns to provider-reported quota state.
"""

import logging
from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class RequestInitiated(DomainEvent):
    """Event triggered when a request is about to be sent."""
    method: str
    url: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestSucceeded(DomainEvent):
    """Event triggered when a request returns a 2xx response that decodes."""
    method: str
    url: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestFailed(DomainEvent):
    """Event triggered when a request fails (transport, status or decode)."""
    method: str
    url: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestDeferred(DomainEvent):
    """Event triggered when a request waits on the rate limiter."""
    wait_time_seconds: float
    remaining: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a failed page request will be retried."""
    operation: str
    attempt_number: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class QuotaRealigned(DomainEvent):
    """Event triggered when provider quota headers override the local estimate."""
    remaining: int
    reset_in_seconds: float
    timestamp: float = field(default_factory=time.time)


logger = logging.getLogger(__name__)


def dispatch_event(event: DomainEvent) -> None:
    """Publishes an event. Events currently go to the debug log only."""
    logger.debug(f"EVENT: {event}")
