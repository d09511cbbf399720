"""QueryCache — keyed read cache with staleness windows and fetch coalescing.

Keys are tuples shaped like ("orders", "detail", "<id>") or
("orders", "list", (("cursor", None), ("limit", 20))). Prefix invalidation
works on the leading tuple elements, so ("orders", "list") busts every
list query at once.

Concurrency: the in-flight task for a key is registered before the first
suspension point, so interleaved callers can never both decide to fetch.
Invalidating a key while its fetch is in flight bumps the key's generation;
the fetch still returns its value but stores it already stale.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from src.sf_common.datetime_utils import Clock, monotonic_clock

T = TypeVar("T")

CacheKey = tuple[Hashable, ...]

logger = logging.getLogger(__name__)


def query_key(*parts: Hashable, params: Mapping[str, Any] | None = None) -> CacheKey:
    """Build a cache key; ``params`` is folded in as a sorted tuple of items."""
    if params is None:
        return tuple(parts)
    return (*parts, tuple(sorted(params.items())))


@dataclass
class CacheEntry(Generic[T]):
    value: T
    fetched_at: float
    stale_after: float
    invalidated: bool = False

    def is_fresh(self, now: float) -> bool:
        return not self.invalidated and now - self.fetched_at < self.stale_after


class QueryCache:
    def __init__(self, clock: Clock = monotonic_clock) -> None:
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry[Any]] = {}
        self._inflight: dict[CacheKey, asyncio.Task[Any]] = {}
        self._generations: dict[CacheKey, int] = {}

    async def fetch(
        self,
        key: CacheKey,
        fetcher: Callable[[], Awaitable[T]],
        stale_after: float,
        force: bool = False,
    ) -> T:
        """Return the cached value while fresh, otherwise fetch (coalesced)."""
        if not force:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(self._clock()):
                return entry.value

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run_fetch(key, fetcher, stale_after))
            self._inflight[key] = task
            self._generations[key] = 0
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        # One caller being cancelled must not cancel the shared fetch.
        return await asyncio.shield(task)

    async def _run_fetch(
        self, key: CacheKey, fetcher: Callable[[], Awaitable[T]], stale_after: float
    ) -> T:
        try:
            value = await fetcher()
            entry = CacheEntry(value, self._clock(), stale_after)
            if self._generations.get(key, 0) != 0:
                logger.debug("Fetch for %s was invalidated while in flight", key)
                entry.invalidated = True
            self._entries[key] = entry
            return value
        finally:
            self._inflight.pop(key, None)
            self._generations.pop(key, None)

    def is_fetching(self, key: CacheKey) -> bool:
        return key in self._inflight

    def peek(self, key: CacheKey) -> Any | None:
        """Last known value regardless of staleness."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def is_fresh(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_fresh(self._clock())

    def set(self, key: CacheKey, value: Any, stale_after: float) -> None:
        self._entries[key] = CacheEntry(value, self._clock(), stale_after)

    def patch(self, key: CacheKey, **fields: Any) -> Any | None:
        """Merge fields into a cached dataclass or dict. No-op when nothing is cached."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if dataclasses.is_dataclass(entry.value) and not isinstance(entry.value, type):
            entry.value = dataclasses.replace(entry.value, **fields)
        elif isinstance(entry.value, dict):
            entry.value = {**entry.value, **fields}
        else:
            raise TypeError(f"Cannot patch cached value of type {type(entry.value).__name__}")
        return entry.value

    def invalidate(self, key: CacheKey) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.invalidated = True
        self._bump_inflight(key)

    def invalidate_prefix(self, prefix: CacheKey) -> int:
        """Mark every entry and in-flight fetch under ``prefix`` stale.

        Returns how many distinct keys were hit.
        """
        hit: set[CacheKey] = set()
        for key, entry in self._entries.items():
            if key[: len(prefix)] == prefix:
                entry.invalidated = True
                hit.add(key)
        for key in list(self._inflight):
            if key[: len(prefix)] == prefix:
                self._bump_inflight(key)
                hit.add(key)
        count = len(hit)
        logger.debug("Invalidated %d entries under %s", count, prefix)
        return count

    def _bump_inflight(self, key: CacheKey) -> None:
        if key in self._inflight:
            self._generations[key] = self._generations.get(key, 0) + 1

    def remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
