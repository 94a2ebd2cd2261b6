"""Concrete implementation of the response cache.

Holds decoded responses in memory under a canonical request key. Entries are
visible until their expiry time and lazily superseded afterwards; there is no
size-based eviction.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from apiwarden.domain.interfaces.cache import CacheService
from apiwarden.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3 * 60 * 60 # 3 hours


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    value: Any
    expires_at: float # time.monotonic() deadline


def make_cache_key(method: str, url: str, body: Any = None) -> CacheKey:
    """Builds a canonical key from the request method, URL and JSON body."""
    key = f"{method.upper()} {url}"
    if body is not None:
        encoded = json.dumps(body, sort_keys=True, separators=(",", ":"), default=str)
        key = f"{key} {hashlib.sha256(encoded.encode()).hexdigest()[:16]}"
    return CacheKey(key)


class ResponseCache(CacheService):
    """In-memory TTL cache shared by all callers of one client."""

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS):
        self.default_ttl = default_ttl
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        logger.info(f"ResponseCache initialized (default ttl={default_ttl}s)")

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now >= entry.expires_at

    async def get(self, key: CacheKey) -> Tuple[Optional[Any], bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry, time.monotonic()):
                logger.debug(f"Cache miss for key: {key}")
                return None, False
            logger.debug(f"Cache hit for key: {key}")
            return entry.value, True

    async def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        effective_ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=time.monotonic() + effective_ttl)
        logger.debug(f"Stored item in cache: key={key}, ttl={effective_ttl}s")

    async def delete(self, key: CacheKey) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Deleted item from cache: key={key}")

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Cleared response cache.")
