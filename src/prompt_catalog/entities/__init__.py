"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cached_catalog import CachedCatalog, CatalogResult
from .prompt_record import PromptRecord
from .sync_result import SyncResult

__all__ = ["CachedCatalog", "CatalogResult", "PromptRecord", "SyncResult"]
