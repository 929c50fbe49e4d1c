"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from prompt_catalog.services import BackgroundTaskRunner, CatalogService, SyncService

    runner = BackgroundTaskRunner()
    sync = SyncService(source=source, store=store)
    catalog = CatalogService(source=source, store=store, runner=runner)
    ```
"""

from .background import BackgroundTaskRunner
from .catalog_service import CatalogService
from .event_registry import ProcessedEventRegistry
from .sync_service import SyncService
from .webhook_service import WebhookOutcome, WebhookService

__all__ = [
    "BackgroundTaskRunner",
    "CatalogService",
    "ProcessedEventRegistry",
    "SyncService",
    "WebhookOutcome",
    "WebhookService",
]
