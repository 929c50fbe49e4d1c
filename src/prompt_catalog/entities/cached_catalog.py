"""Cached catalog domain entities."""

from dataclasses import dataclass

from .prompt_record import PromptRecord

UNKNOWN_LAST_SYNC = "unknown"


@dataclass(frozen=True)
class CachedCatalog:
    """Catalog snapshot as read back from a cache store.

    Attributes:
        prompts: Cached prompt records
        categories: Cached category labels
        last_sync: ISO-8601 timestamp of the write, or "unknown" if that key expired
        version: Write counter, 0 if that key expired
    """

    prompts: list[PromptRecord]
    categories: list[str]
    last_sync: str = UNKNOWN_LAST_SYNC
    version: int = 0


@dataclass(frozen=True)
class CatalogResult:
    """Result of the read path.

    Attributes:
        prompts: Prompt records to serve
        categories: Sorted category labels
        from_cache: True if served from a cache store
        stale: True if served from an expired copy after an upstream failure
    """

    prompts: list[PromptRecord]
    categories: list[str]
    from_cache: bool
    stale: bool = False
