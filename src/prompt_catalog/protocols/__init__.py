"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Swapping the cache backend (Redis in production, memory in development)
- Unit testing with fake sources and stores
- Clear separation of concerns

Usage:
    ```python
    from prompt_catalog.protocols import CatalogStore, PromptSource

    store: CatalogStore = RedisCatalogRepository.create(redis_client)
    store: CatalogStore = MemoryCatalogRepository.create()
    ```
"""

from .catalog_store import CatalogStore
from .prompt_source import PromptSource

__all__ = [
    "CatalogStore",
    "PromptSource",
]
