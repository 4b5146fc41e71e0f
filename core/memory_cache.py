"""
In-Memory TTL Cache

Process-local key/value cache with per-entry expiration. Used to avoid
recomputing aggregations that change slowly compared to how often they are
read. The cache is an optimization only: losing it never loses data.

Usage:
    from core.memory_cache import TTLCache

    cache = TTLCache()
    cache.start_cleanup(300)

    stats = await cache.get_or_compute("availability:stats:{}", compute_stats, ttl_seconds=300)

    await cache.close()
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """
    Key/value store with lazy expiration and an optional periodic cleanup.

    Expiration is checked on every read, so correctness never depends on the
    cleanup pass having run. Not thread-safe; meant for a single event loop.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 10 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._cleanup_task: Optional[PeriodicTask] = None

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired"""
        entry = self._entries.get(key)
        if entry is None:
            return default

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return default

        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry"""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl < 0:
            raise ValueError(f"ttl_seconds must not be negative, got {ttl}")

        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``; returns the number removed"""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]

        if keys:
            logger.debug(f"[Cache] dropped {len(keys)} entries with prefix {prefix!r}")
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for ``key`` or compute, store and return it.

        A producer failure propagates and leaves the cache untouched.
        Concurrent misses on the same key each run the producer.
        """
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"[Cache] HIT: {key}")
            return cached

        logger.debug(f"[Cache] MISS: {key}")
        value = await producer()
        self.set(key, value, ttl_seconds)
        return value

    def cleanup(self) -> int:
        """Remove all expired entries; returns the number removed"""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(f"[Cache] cleanup removed {len(expired)} expired entries")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        keys: List[str] = list(self._entries.keys())
        return {"size": len(keys), "keys": keys}

    # ========================================
    # Lifecycle
    # ========================================

    def start_cleanup(self, interval_seconds: float) -> None:
        """Start the background cleanup pass (requires a running loop)"""
        if self._cleanup_task is None:
            self._cleanup_task = PeriodicTask(
                "cache_cleanup",
                interval_seconds,
                self._cleanup_async,
                run_immediately=False,
            )
        self._cleanup_task.start()

    async def close(self) -> None:
        """Cancel the cleanup pass and drop all entries"""
        if self._cleanup_task is not None:
            await self._cleanup_task.stop()
            self._cleanup_task = None
        self.clear()

    async def _cleanup_async(self) -> None:
        self.cleanup()
