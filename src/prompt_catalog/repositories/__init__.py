"""Repository layer for data access.

This layer abstracts external dependencies (Feishu, Redis, process memory)
behind protocol-based interfaces. This enables:
- Swapping the cache backend without touching services
- Unit testing with fake sources and stores
- Clear separation of concerns
"""

from prompt_catalog.protocols import CatalogStore, PromptSource

from .feishu_source import FeishuBitableSource, extract_categories
from .memory_cache import MemoryCache
from .memory_repository import MemoryCatalogRepository
from .redis_repository import RedisCatalogRepository

__all__ = [
    "CatalogStore",
    "PromptSource",
    "FeishuBitableSource",
    "MemoryCache",
    "MemoryCatalogRepository",
    "RedisCatalogRepository",
    "extract_categories",
]
