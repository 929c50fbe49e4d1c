"""Catalog store protocol.

Defines the capability interface shared by the two cache backends:
- Redis (durable, shared across processes, production)
- In-process memory (fallback when no durable store is configured)

The backend is chosen once at start-up from configuration, so call sites
never branch on the environment.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from prompt_catalog.entities import CachedCatalog, PromptRecord


@runtime_checkable
class CatalogStore(Protocol):
    """Protocol for catalog cache backends."""

    @property
    def backend_name(self) -> str:
        """Short backend identifier (e.g., "redis", "memory")."""
        ...

    async def read(self) -> CachedCatalog | None:
        """Read the cached catalog.

        Returns:
            The cached catalog, or None if prompts or categories are missing.
            Store failures also yield None.
        """
        ...

    async def read_stale(self) -> CachedCatalog | None:
        """Read any cached copy, fresh or not, for the stale-on-error path.

        Returns:
            The most recent catalog the backend can still produce, or None
        """
        ...

    async def write(self, prompts: list[PromptRecord], categories: list[str]) -> bool:
        """Overwrite the cached catalog and bump its version.

        Args:
            prompts: Records to cache
            categories: Category labels derived from the records

        Returns:
            True on success, False on any store failure (never raises)
        """
        ...

    async def invalidate(self) -> None:
        """Drop the cached catalog. Failures are logged, not raised."""
        ...

    async def last_sync_time(self) -> datetime | None:
        """Return the time of the last successful write, if known."""
        ...

    async def is_stale(self) -> bool:
        """Check whether the last write is older than the freshness window.

        Returns:
            True if never synced or older than the window, False otherwise
        """
        ...

    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        ...
