"""
Cache - In-memory TTL cache entry with single-flight loading.

Usage:
    from bsvfx.cache import SingleFlightCache

    cache = SingleFlightCache('rates', loader=fetch_rates, initial=placeholder, ttl_seconds=300)
    rates = await cache.get()            # Loads once, then serves from memory until stale
    rates = await cache.get(force=True)  # Always loads (joins a load already in flight)
    cache.stats()

Concurrent callers that find a load in flight await that same load instead of
starting another one. A failed load leaves the previous value in place and the
error reaches every caller that was waiting on it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with the time it was fetched and the load in flight, if any."""

    value: T
    fetched_at: Optional[float] = None
    in_flight: Optional["asyncio.Task[T]"] = None


class SingleFlightCache(Generic[T]):
    """
    Single-value TTL cache whose loader runs at most once at a time.

    ttl_seconds=0 disables the freshness check: every non-forced get() that
    finds nothing in flight runs the loader.
    """

    def __init__(
        self,
        name: str,
        loader: Callable[[], Awaitable[T]],
        initial: T,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._name = name
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: CacheEntry[T] = CacheEntry(value=initial)
        self._hits = 0
        self._misses = 0
        self._joins = 0
        self._failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def value(self) -> T:
        """Last successfully loaded value (or the initial placeholder)."""
        return self._entry.value

    @property
    def fetched_at(self) -> Optional[float]:
        """Clock reading of the last successful load, None if never loaded."""
        return self._entry.fetched_at

    @property
    def loading(self) -> bool:
        return self._entry.in_flight is not None

    def is_fresh(self) -> bool:
        """True if a successful load happened less than ttl_seconds ago."""
        fetched_at = self._entry.fetched_at
        if fetched_at is None or self._ttl <= 0:
            return False
        return self._clock() - fetched_at < self._ttl

    def age(self) -> Optional[float]:
        """Seconds since the last successful load, None if never loaded."""
        if self._entry.fetched_at is None:
            return None
        return self._clock() - self._entry.fetched_at

    async def get(self, force: bool = False) -> T:
        """
        Return the cached value, loading it if stale, missing or forced.

        Raises whatever the loader raises; the cached value is left untouched.
        """
        if not force and self.is_fresh():
            self._hits += 1
            return self._entry.value

        task = self._entry.in_flight
        if task is None:
            self._misses += 1
            task = asyncio.ensure_future(self._load())
            task.add_done_callback(self._consume_result)
            self._entry.in_flight = task
        else:
            self._joins += 1
            logger.debug(f"Cache '{self._name}': joining load in flight")

        # Shielded so a cancelled caller does not cancel the load others share
        return await asyncio.shield(task)

    async def _load(self) -> T:
        try:
            value = await self._loader()
        except Exception:
            self._failures += 1
            raise
        else:
            self._entry.value = value
            self._entry.fetched_at = self._clock()
            return value
        finally:
            self._entry.in_flight = None

    def _consume_result(self, task: "asyncio.Task[T]") -> None:
        # Marks the exception as retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    def invalidate(self) -> None:
        """Mark the value stale so the next get() loads again."""
        self._entry.fetched_at = None

    def stats(self) -> dict:
        """
        Get cache statistics.

        Returns dict with hits, misses, joins, failures and hit rate.
        """
        total_requests = self._hits + self._misses + self._joins
        return {
            "name": self._name,
            "ttl_seconds": self._ttl,
            "fresh": self.is_fresh(),
            "age_seconds": self.age(),
            "loading": self.loading,
            "hits": self._hits,
            "misses": self._misses,
            "joins": self._joins,
            "failures": self._failures,
            "hit_rate": self._hits / total_requests if total_requests > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset hit/miss counters."""
        self._hits = 0
        self._misses = 0
        self._joins = 0
        self._failures = 0
