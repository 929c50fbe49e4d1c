"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Process-lifetime state (event registry, memory cache, token cache)
      is owned by the objects built here, no module-level globals
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from prompt_catalog.config import Settings, get_redis_client, settings
from prompt_catalog.handlers import CronHandler, PromptsHandler, WebhookHandler
from prompt_catalog.protocols import CatalogStore
from prompt_catalog.repositories import (
    FeishuBitableSource,
    MemoryCatalogRepository,
    RedisCatalogRepository,
)
from prompt_catalog.services import (
    BackgroundTaskRunner,
    CatalogService,
    ProcessedEventRegistry,
    SyncService,
    WebhookService,
)


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized. Check lifespan setup.")
    return value


def get_prompts_handler(request: Request) -> PromptsHandler:
    """Dependency injection for PromptsHandler from app.state."""
    return _from_state(request, "prompts_handler")


def get_webhook_handler(request: Request) -> WebhookHandler:
    """Dependency injection for WebhookHandler from app.state."""
    return _from_state(request, "webhook_handler")


def get_cron_handler(request: Request) -> CronHandler:
    """Dependency injection for CronHandler from app.state."""
    return _from_state(request, "cron_handler")


def get_catalog_store(request: Request) -> CatalogStore:
    """Dependency injection for the CatalogStore from app.state."""
    return _from_state(request, "store")


def build_store(config: Settings) -> CatalogStore:
    """Pick the cache backend once, from configuration.

    Args:
        config: Application settings

    Returns:
        RedisCatalogRepository if REDIS_URL is set, else MemoryCatalogRepository
    """
    if config.use_durable_cache:
        return RedisCatalogRepository.create(
            redis_client=get_redis_client(config),
            ttl=config.durable_cache_ttl,
            freshness_window=config.cache_freshness_window,
        )
    return MemoryCatalogRepository.create(
        ttl=config.cache_ttl,
        freshness_window=config.cache_freshness_window,
    )


def init_app_state(app: FastAPI, config: Settings) -> None:
    """Build every layer and store it in app.state.

    1. Repositories (source, store)
    2. Services (sync, catalog, webhook) sharing one background runner
    3. Handlers (HTTP endpoints)
    """
    source = FeishuBitableSource.create(
        app_id=config.feishu_app_id,
        app_secret=config.feishu_app_secret,
        app_token=config.feishu_bitable_app_token,
        table_id=config.feishu_bitable_table_id,
        base_url=config.feishu_api_base,
        page_size=config.feishu_page_size,
        max_pages=config.feishu_max_pages,
        timeout=config.feishu_request_timeout,
    )
    store = build_store(config)
    runner = BackgroundTaskRunner()

    sync_service = SyncService(source=source, store=store)
    catalog_service = CatalogService(source=source, store=store, runner=runner)
    webhook_service = WebhookService(
        sync_service=sync_service,
        registry=ProcessedEventRegistry(capacity=config.processed_events_capacity),
        runner=runner,
        encrypt_key=config.feishu_encrypt_key,
        verification_token=config.feishu_verification_token,
        target_table_id=config.feishu_webhook_table_id,
    )

    app.state.source = source
    app.state.store = store
    app.state.runner = runner
    app.state.prompts_handler = PromptsHandler(catalog_service=catalog_service)
    app.state.webhook_handler = WebhookHandler(webhook_service=webhook_service)
    app.state.cron_handler = CronHandler(sync_service=sync_service, cron_secret=config.cron_secret)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Cleanup:
        Waits for background syncs, closes clients, removes state
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_app_state(app, settings)

    print("Starting Prompt Catalog API...")
    print(f"✓ Cache backend: {app.state.store.backend_name}")
    print(f"✓ Cache healthy: {await app.state.store.health_check()}")

    yield

    await app.state.runner.drain()
    await app.state.source.close()
    await app.state.store.close()
    for name in ("prompts_handler", "webhook_handler", "cron_handler", "runner", "store", "source"):
        delattr(app.state, name)
    print("✓ Prompt Catalog API shut down")


# Type aliases for cleaner dependency injection
PromptsHandlerDep = Annotated[PromptsHandler, Depends(get_prompts_handler)]
WebhookHandlerDep = Annotated[WebhookHandler, Depends(get_webhook_handler)]
CronHandlerDep = Annotated[CronHandler, Depends(get_cron_handler)]
StoreDep = Annotated[CatalogStore, Depends(get_catalog_store)]
