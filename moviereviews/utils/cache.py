"""
Caching Utilities
=================
In-memory cache with TTL (Time To Live) and LRU (Least Recently Used)
eviction, used to avoid re-fetching movie metadata from TMDB.

The store is shared by the worker threads of the movie search fan-out, so
every operation takes a lock.

Usage:
    from moviereviews.utils.cache import CacheStore

    store = CacheStore(max_size=500)
    key = store.make_key("resolve_title", ("603", "es-ES"))
    value = store.get(key)
    if value is None:
        value = fetch()
        store.set(key, value, ttl=600)
"""
from typing import Any, Optional
from collections import OrderedDict
from datetime import datetime, timedelta
import hashlib
import json
import logging
import threading

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Simple in-memory cache with TTL and LRU eviction.
    For production with multiple workers, use Redis instead.
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize cache store.

        Args:
            max_size: Maximum number of items in cache (LRU eviction)
        """
        self._cache: OrderedDict = OrderedDict()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    @staticmethod
    def make_key(name: str, args: tuple, kwargs: Optional[dict] = None) -> str:
        """
        Create a unique cache key from a name and arguments.

        Args:
            name: Logical name of the cached operation
            args: Positional arguments
            kwargs: Keyword arguments

        Returns:
            Unique cache key as string
        """
        key_data = {
            'func': name,
            'args': args,
            'kwargs': sorted((kwargs or {}).items())
        }

        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return hashlib.md5(key_str.encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache if exists and not expired.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, expiry = self._cache[key]

            # Check if expired
            if expiry and datetime.now() > expiry:
                del self._cache[key]
                self._misses += 1
                return None

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (None = no expiration)
        """
        expiry = datetime.now() + timedelta(seconds=ttl) if ttl else None

        with self._lock:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)

            # Evict oldest if over max_size (LRU)
            if len(self._cache) > self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"Evicted cache key: {oldest_key}")

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            return {
                'size': len(self._cache),
                'max_size': self._max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': f"{hit_rate:.2f}%"
            }
