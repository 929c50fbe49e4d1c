"""Read path for the prompt catalog."""

import logging

from prompt_catalog.entities import CatalogResult, PromptRecord
from prompt_catalog.protocols import CatalogStore, PromptSource
from prompt_catalog.repositories import extract_categories

from .background import BackgroundTaskRunner

logger = logging.getLogger(__name__)


class CatalogService:
    """Serves the catalog from cache, falling back to the upstream source.

    Business logic:
    1. Cache hit -> return it
    2. Miss -> fetch upstream, return immediately, warm the cache in the background
    3. Upstream failure -> serve any stale copy the store still has, else raise
    """

    def __init__(
        self,
        source: PromptSource,
        store: CatalogStore,
        runner: BackgroundTaskRunner,
    ) -> None:
        """Initialize the catalog service.

        Args:
            source: Upstream prompt source (required).
            store: Cache store chosen at start-up (required).
            runner: Background context for cache warming (required).
        """
        self._source = source
        self._store = store
        self._runner = runner

    async def get_prompts(self) -> CatalogResult:
        """Return the catalog.

        Returns:
            CatalogResult with prompts, categories and cache provenance

        Raises:
            ConfigurationError: If the source is misconfigured and no copy is cached
            UpstreamError: If the fetch failed and no copy is cached
        """
        cached = await self._store.read()
        if cached is not None:
            logger.info(
                "Returning cached data (version: %d, lastSync: %s)", cached.version, cached.last_sync
            )
            return CatalogResult(prompts=cached.prompts, categories=cached.categories, from_cache=True)

        logger.info("Cache miss, fetching from Feishu...")
        try:
            prompts = await self._source.fetch_records()
        except Exception as e:
            logger.error("Failed to fetch prompts: %s", e)
            stale = await self._store.read_stale()
            if stale is None:
                raise
            logger.warning("Returning stale cached data due to API error")
            return CatalogResult(
                prompts=stale.prompts,
                categories=stale.categories,
                from_cache=True,
                stale=True,
            )

        categories = extract_categories(prompts)
        self._runner.submit(self._warm(prompts, categories), name="cache-warm")
        return CatalogResult(prompts=prompts, categories=categories, from_cache=False)

    async def _warm(self, prompts: list[PromptRecord], categories: list[str]) -> None:
        if not await self._store.write(prompts, categories):
            logger.error("Failed to cache prompts")

    @property
    def store(self) -> CatalogStore:
        """Get the underlying store (for testing)."""
        return self._store
