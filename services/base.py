"""
Shared plumbing for the data-access services.

Every service gets its database session and the cache instance at construction.
Reads go through ``_cached`` (read-through with a fixed TTL, misses that find
nothing are not cached); writes finish with ``_invalidate`` using the service's
declared key prefixes/patterns so every list or aggregate that could include the
written row is dropped.
"""

import logging
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Session

from core.cache import Cache

logger = logging.getLogger(__name__)


class CachedService:
    """Base class for services backed by the relational store and the cache."""

    def __init__(self, db: Session, cache: Cache):
        self.db = db
        self.cache = cache

    def _cached(self, key: str, ttl: int, loader: Callable[[], Optional[Any]]) -> Optional[Any]:
        value = self.cache.get(key)
        if value is not None:
            return value
        value = loader()
        if value is not None:
            self.cache.set(key, value, ttl)
        return value

    def _invalidate(self, patterns: Iterable[str] = (), keys: Iterable[str] = ()) -> None:
        for key in keys:
            self.cache.delete(key)
        for pattern in patterns:
            self.cache.delete_pattern(pattern)
