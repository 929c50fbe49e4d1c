"""Staleness policy shared by the catalog stores."""

from datetime import datetime

# Cache keys shared by every CatalogStore backend
PROMPTS_KEY = "prompts:data"
CATEGORIES_KEY = "prompts:categories"
LAST_SYNC_KEY = "prompts:last_sync"
VERSION_KEY = "prompts:version"

FRESHNESS_WINDOW_SECONDS = 3600


def is_stale(
    last_sync: datetime | None,
    now: datetime,
    freshness_window: float = FRESHNESS_WINDOW_SECONDS,
) -> bool:
    """Decide whether a catalog synced at ``last_sync`` needs refreshing.

    Args:
        last_sync: Time of the last successful sync, None if never synced
        now: Current time (timezone-aware)
        freshness_window: Maximum age in seconds

    Returns:
        True if never synced or older than the window
    """
    if last_sync is None:
        return True
    return (now - last_sync).total_seconds() > freshness_window
