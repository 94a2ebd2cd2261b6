"""Interface for response caching.

Defines the contract for storing and retrieving decoded responses under a
canonical request key with a time-to-live.
"""

import abc
from typing import Any, Optional, Tuple

from ..models.common import CacheKey


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Tuple[Optional[Any], bool]:
        """Retrieves an item from the cache.

        Args:
            key: The cache key to retrieve.

        Returns:
            A ``(value, found)`` pair. Expired entries report ``found=False``.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores an item, unconditionally replacing any previous entry.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live in seconds (uses the default if None).
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> None:
        """Deletes an item from the cache."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Clears all items from the cache."""
        pass
