"""Synchronization from the upstream source into the catalog store."""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from prompt_catalog.entities import SyncResult
from prompt_catalog.exceptions import DurableStoreError
from prompt_catalog.protocols import CatalogStore, PromptSource
from prompt_catalog.repositories import extract_categories
from prompt_catalog.utils import format_iso

logger = logging.getLogger(__name__)


class SyncService:
    """Fetches the full catalog and overwrites the cache store with it.

    Concurrent syncs are not serialized; each overwrites every key and the
    last writer wins.
    """

    def __init__(
        self,
        source: PromptSource,
        store: CatalogStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the sync service.

        Args:
            source: Upstream prompt source (required).
            store: Cache store to write into (required).
            clock: Returns the current time in seconds.
        """
        self._source = source
        self._store = store
        self._clock = clock

    async def sync(self) -> SyncResult:
        """Run one sync attempt.

        Never raises: fetch errors and failed writes both produce a failure
        result with zero counts.

        Returns:
            SyncResult describing the attempt
        """
        sync_time = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        logger.info("Starting sync at %s", format_iso(sync_time))

        try:
            prompts = await self._source.fetch_records()
            categories = extract_categories(prompts)
            logger.info("Fetched %d prompts, %d categories", len(prompts), len(categories))

            if not await self._store.write(prompts, categories):
                raise DurableStoreError("Failed to save to cache")

            return SyncResult(
                success=True,
                prompt_count=len(prompts),
                category_count=len(categories),
                sync_time=sync_time,
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("Sync failed at %s: %s", format_iso(sync_time), message)
            return SyncResult(
                success=False,
                prompt_count=0,
                category_count=0,
                sync_time=sync_time,
                error=message,
            )

    async def is_stale(self) -> bool:
        """Check the store's staleness policy."""
        return await self._store.is_stale()
