"""Bounded expiring cache with per-key request coalescing."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _CacheEntry(Generic[V]):
    value: V
    expires_at: float


class ExpiringCache(Generic[K, V]):
    """Key/value store with per-entry TTL and a maximum entry count.

    Expired entries are dropped lazily on access. When an insert pushes the
    store past ``max_entries``, expired entries are purged first and then the
    oldest-inserted entries are evicted (insertion order, not access order).

    ``get_or_set`` coalesces concurrent misses: for a given key only one
    factory call is in flight and every waiter receives its result (or its
    exception). Failed computations are not cached.

    Not thread-safe. Share an instance between tasks of one event loop only;
    in-flight computations are futures bound to that loop.

    Args:
        ttl_seconds: default lifetime of an entry
        max_entries: capacity before eviction kicks in
        clock: monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not ttl_seconds or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        if not max_entries or max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {max_entries}")
        self.ttl = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._store: dict[K, _CacheEntry[V]] = {}
        self._inflight: dict[K, asyncio.Future[V]] = {}

    def _lookup(self, key: K) -> tuple[bool, V | None]:
        entry = self._store.get(key)
        if entry is None:
            return False, None
        if entry.expires_at <= self._clock():
            del self._store[key]
            return False, None
        return True, entry.value

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the live value for *key*, or *default* if missing/expired."""
        hit, value = self._lookup(key)
        return value if hit else default

    def set(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        """Store *value*, optionally with a TTL different from the default."""
        ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else self.ttl
        # Re-inserting moves the key to the young end of the eviction order
        self._store.pop(key, None)
        self._store[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)
        if len(self._store) > self.max_entries:
            self._purge_expired()
        while len(self._store) > self.max_entries:
            oldest = next(iter(self._store))
            del self._store[oldest]
            logger.debug("Evicted cache entry %r (capacity %d)", oldest, self.max_entries)

    async def get_or_set(
        self,
        key: K,
        factory: Callable[[], Awaitable[V]],
        ttl_seconds: float | None = None,
    ) -> V:
        """Return the cached value or compute it once, sharing the result."""
        hit, value = self._lookup(key)
        if hit:
            return value  # type: ignore[return-value]

        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._fill(key, factory, ttl_seconds))
            self._inflight[key] = pending
        else:
            logger.debug("Joining in-flight computation for %r", key)
        # One waiter being cancelled must not cancel the shared computation
        return await asyncio.shield(pending)

    async def _fill(
        self,
        key: K,
        factory: Callable[[], Awaitable[V]],
        ttl_seconds: float | None,
    ) -> V:
        try:
            value = await factory()
            self.set(key, value, ttl_seconds)
            return value
        finally:
            self._inflight.pop(key, None)

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return self._lookup(key)[0]  # type: ignore[arg-type]

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._store.items() if entry.expires_at <= now]
        for k in expired:
            del self._store[k]
