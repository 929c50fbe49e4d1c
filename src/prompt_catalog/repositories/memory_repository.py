"""In-memory implementation of CatalogStore.

Used when no durable store is configured (e.g., local development). The
catalog lives in a MemoryCache under the same keys the Redis backend uses,
with the memory cache's default TTL. The last written catalog is also kept
outside the TTL so a failed upstream fetch can still be answered with stale
data.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from prompt_catalog.config import settings
from prompt_catalog.entities import CachedCatalog, PromptRecord
from prompt_catalog.entities.cached_catalog import UNKNOWN_LAST_SYNC
from prompt_catalog.utils import format_iso, parse_iso

from .memory_cache import MemoryCache
from .staleness import (
    CATEGORIES_KEY,
    FRESHNESS_WINDOW_SECONDS,
    LAST_SYNC_KEY,
    PROMPTS_KEY,
    VERSION_KEY,
    is_stale,
)

logger = logging.getLogger(__name__)


class MemoryCatalogRepository:
    """Process-local catalog store.

    This class satisfies the CatalogStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        cache: MemoryCache,
        freshness_window: int = FRESHNESS_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the memory catalog repository.

        Args:
            cache: Backing TTL cache, owned by the caller.
            freshness_window: Staleness window in seconds.
            clock: Returns the current time in seconds (injectable for tests).
        """
        self._cache = cache
        self._freshness_window = freshness_window
        self._clock = clock
        self._last_written: CachedCatalog | None = None

    @classmethod
    def create(
        cls,
        ttl: int | None = None,
        freshness_window: int | None = None,
    ) -> "MemoryCatalogRepository":
        """Factory method that builds its own MemoryCache.

        Args:
            ttl: Entry TTL in seconds. If None, uses settings.
            freshness_window: Staleness window. If None, uses settings.

        Returns:
            Configured MemoryCatalogRepository
        """
        return cls(
            cache=MemoryCache(default_ttl_seconds=ttl or settings.cache_ttl),
            freshness_window=freshness_window or settings.cache_freshness_window,
        )

    @property
    def backend_name(self) -> str:
        return "memory"

    @property
    def cache(self) -> MemoryCache:
        """Get the underlying memory cache (for testing)."""
        return self._cache

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    async def read(self) -> CachedCatalog | None:
        prompts = self._cache.get(PROMPTS_KEY)
        categories = self._cache.get(CATEGORIES_KEY)
        if prompts is None or categories is None:
            return None
        return CachedCatalog(
            prompts=list(prompts),
            categories=list(categories),
            last_sync=self._cache.get(LAST_SYNC_KEY) or UNKNOWN_LAST_SYNC,
            version=self._cache.get(VERSION_KEY) or 0,
        )

    async def read_stale(self) -> CachedCatalog | None:
        """Return the fresh copy if there is one, else the last written catalog."""
        return await self.read() or self._last_written

    async def write(self, prompts: list[PromptRecord], categories: list[str]) -> bool:
        now = format_iso(self._now())
        version = (self._cache.get(VERSION_KEY) or 0) + 1

        self._cache.set(PROMPTS_KEY, list(prompts))
        self._cache.set(CATEGORIES_KEY, list(categories))
        self._cache.set(LAST_SYNC_KEY, now)
        self._cache.set(VERSION_KEY, version)
        self._last_written = CachedCatalog(
            prompts=list(prompts),
            categories=list(categories),
            last_sync=now,
            version=version,
        )

        logger.info("Memory cache updated at %s, version: %d", now, version)
        return True

    async def invalidate(self) -> None:
        for key in (PROMPTS_KEY, CATEGORIES_KEY, LAST_SYNC_KEY):
            self._cache.delete(key)
        logger.info("Memory cache invalidated")

    async def last_sync_time(self) -> datetime | None:
        value = self._cache.get(LAST_SYNC_KEY)
        return parse_iso(value) if value else None

    async def is_stale(self) -> bool:
        return is_stale(await self.last_sync_time(), self._now(), self._freshness_window)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._cache.clear()
