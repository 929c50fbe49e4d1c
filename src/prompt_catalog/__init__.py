"""Prompt Catalog - AI prompt catalog served from a Feishu Bitable.

This package provides a layered architecture for the catalog and its cache:

Layers:
    - protocols: Interface contracts (PromptSource, CatalogStore)
    - repositories: Data access implementations (Feishu, Redis, memory)
    - services: Business logic (sync, read path, webhook ingestion)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from prompt_catalog.repositories import FeishuBitableSource, MemoryCatalogRepository
    from prompt_catalog.services import SyncService

    sync = SyncService(
        source=FeishuBitableSource.create(),
        store=MemoryCatalogRepository.create(),
    )
    result = await sync.sync()
    ```

For HTTP API:
    ```python
    from prompt_catalog.api.app import app
    ```
"""

from prompt_catalog.config import get_redis_client, settings
from prompt_catalog.entities import CachedCatalog, CatalogResult, PromptRecord, SyncResult
from prompt_catalog.exceptions import (
    ConfigurationError,
    DurableStoreError,
    PromptCatalogError,
    RecordNormalizationError,
    UpstreamError,
    WebhookValidationError,
)
from prompt_catalog.handlers import CronHandler, PromptsHandler, WebhookHandler
from prompt_catalog.protocols import CatalogStore, PromptSource
from prompt_catalog.repositories import (
    FeishuBitableSource,
    MemoryCache,
    MemoryCatalogRepository,
    RedisCatalogRepository,
    extract_categories,
)
from prompt_catalog.services import (
    BackgroundTaskRunner,
    CatalogService,
    ProcessedEventRegistry,
    SyncService,
    WebhookService,
)

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Errors
    "PromptCatalogError",
    "ConfigurationError",
    "UpstreamError",
    "DurableStoreError",
    "WebhookValidationError",
    "RecordNormalizationError",
    # Protocols (interfaces)
    "CatalogStore",
    "PromptSource",
    # Services (business logic)
    "BackgroundTaskRunner",
    "CatalogService",
    "ProcessedEventRegistry",
    "SyncService",
    "WebhookService",
    # Handlers (HTTP)
    "CronHandler",
    "PromptsHandler",
    "WebhookHandler",
    # Repositories (data access)
    "FeishuBitableSource",
    "MemoryCache",
    "MemoryCatalogRepository",
    "RedisCatalogRepository",
    "extract_categories",
    # Entities (domain models)
    "CachedCatalog",
    "CatalogResult",
    "PromptRecord",
    "SyncResult",
]
