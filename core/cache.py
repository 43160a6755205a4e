"""
Key/value cache with per-entry time-to-live and prefix/pattern invalidation.

Two interchangeable backends implement the same contract:

* ``MemoryCache`` keeps entries in the serving process (cachetools TLRUCache).
  Invalidations are not visible to other processes, so it only fits a single
  serving instance.
* ``RedisCache`` keeps entries in Redis, shared by every instance.

The cache instance is built once by the application factory and handed to
each data-access component; nothing in this module is a global.
"""

import fnmatch
import json
import logging
import threading
import time
from typing import Any, Callable, Optional

import redis
from cachetools import TLRUCache

from core.config import Settings

logger = logging.getLogger(__name__)

_GLOB_CHARS = ("*", "?", "[")


def is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in _GLOB_CHARS)


class Cache:
    """Cache contract shared by every backend."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: int) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching ``pattern``.

        A pattern containing glob characters (``*``, ``?``, ``[``) is matched as a
        glob against the whole key, anything else is treated as a key prefix.

        Returns:
            int: number of keys removed
        """
        raise NotImplementedError

    def flush_all(self) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        return True


class _Entry:
    __slots__ = ("value", "ttl")

    def __init__(self, value: Any, ttl: float):
        self.value = value
        self.ttl = ttl


def _entry_expiry(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCache(Cache):
    """
    In-process cache with lazy expiry.

    Expired entries may still occupy memory until the next write or scan but are
    never returned by ``get``. Pattern deletion walks every key, which is fine
    for the small, bounded key space of a single process.
    """

    def __init__(self, max_entries: int = 10000, timer: Callable[[], float] = time.monotonic):
        self._store = TLRUCache(maxsize=max_entries, ttu=_entry_expiry, timer=timer)
        # TLRUCache keeps linked lists internally; the lock only protects them.
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._store[key] = _Entry(value, ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        glob = is_glob(pattern)
        removed = 0
        with self._lock:
            for key in list(self._store.keys()):
                matched = fnmatch.fnmatchcase(key, pattern) if glob else key.startswith(pattern)
                if matched and self._store.pop(key, None) is not None:
                    removed += 1
        logger.debug(f"Cache invalidated {removed} key(s) matching {pattern!r}")
        return removed

    def flush_all(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)


class RedisCache(Cache):
    """Redis-backed cache; values are stored JSON-encoded."""

    def __init__(self, client: "redis.Redis", key_prefix: str = "evently:"):
        self._client = client
        self._prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "evently:") -> "RedisCache":
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self._client.get(self._key(key))
        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        self._client.set(self._key(key), json.dumps(value, default=str), ex=int(ttl))

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(self._key(key)))

    def delete_pattern(self, pattern: str) -> int:
        match = self._key(pattern if is_glob(pattern) else f"{pattern}*")
        removed = 0
        batch = []
        for key in self._client.scan_iter(match=match, count=500):
            batch.append(key)
            if len(batch) >= 500:
                removed += self._client.delete(*batch)
                batch = []
        if batch:
            removed += self._client.delete(*batch)
        logger.debug(f"Cache invalidated {removed} key(s) matching {pattern!r}")
        return removed

    def flush_all(self) -> None:
        self.delete_pattern("*")

    def ping(self) -> bool:
        return bool(self._client.ping())


def build_cache(settings: Settings) -> Cache:
    """
    Construct the cache backend selected by CACHE_BACKEND.

    Args:
        settings: Application settings

    Returns:
        Cache: a fresh cache instance
    """
    if settings.CACHE_BACKEND == "redis":
        logger.info(f"Using Redis cache at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
        return RedisCache.from_url(settings.redis_url)
    logger.info("Using in-process memory cache")
    return MemoryCache(max_entries=settings.CACHE_MAX_ENTRIES)
