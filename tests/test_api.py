"""
Tests for the prompt catalog API.
"""

import asyncio
import json

import pytest
from conftest import FakeRedis, FakeSource, make_record
from fastapi.testclient import TestClient

from prompt_catalog.api.app import app
from prompt_catalog.api.dependencies import build_store
from prompt_catalog.config import Settings, get_redis_client
from prompt_catalog.exceptions import ConfigurationError, UpstreamError
from prompt_catalog.handlers import CronHandler, PromptsHandler, WebhookHandler
from prompt_catalog.repositories import MemoryCatalogRepository, RedisCatalogRepository
from prompt_catalog.services import (
    CatalogService,
    ProcessedEventRegistry,
    SyncService,
    WebhookService,
)
from prompt_catalog.services.webhook_crypto import BITABLE_RECORD_CHANGED

CRON_SECRET = "cron-secret"
TOKEN = "verify-token"


class RecordingRunner:
    """Runner double that records submissions instead of scheduling them."""

    def __init__(self):
        self.submitted: list[str] = []

    def submit(self, coro, name):
        coro.close()
        self.submitted.append(name)

    async def drain(self):
        pass


def _install(source, store, runner=None):
    runner = runner or RecordingRunner()
    sync_service = SyncService(source=source, store=store)
    app.state.store = store
    app.state.runner = runner
    app.state.prompts_handler = PromptsHandler(CatalogService(source=source, store=store, runner=runner))
    app.state.cron_handler = CronHandler(sync_service=sync_service, cron_secret=CRON_SECRET)
    app.state.webhook_handler = WebhookHandler(
        WebhookService(
            sync_service=sync_service,
            registry=ProcessedEventRegistry(),
            runner=runner,
            verification_token=TOKEN,
            target_table_id="tbl1",
        )
    )
    return runner


@pytest.fixture
def client():
    """Create a test client."""
    yield TestClient(app)
    for name in ("store", "runner", "prompts_handler", "cron_handler", "webhook_handler"):
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def memory_store():
    return MemoryCatalogRepository.create(ttl=300, freshness_window=3600)


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Prompt Catalog API"
    assert data["endpoints"]["prompts"] == "/api/prompts"


def test_health(client, memory_store):
    """Test health check endpoint."""
    _install(FakeSource(), memory_store)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "cacheBackend": "memory", "cacheHealthy": True}


def test_health_reports_redis_outage(client, clock):
    redis = FakeRedis(clock)
    redis.fail = True
    _install(FakeSource(), RedisCatalogRepository(redis_client=redis, clock=clock))

    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["cacheBackend"] == "redis"


def test_get_prompts_cache_miss(client, memory_store):
    """Cache miss fetches from the source and schedules a cache warm."""
    records = [make_record("rec1", "Writing"), make_record("rec2", "Coding")]
    runner = _install(FakeSource(records), memory_store)

    response = client.get("/api/prompts")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["total"] == 2
    assert data["categories"] == ["Coding", "Writing"]
    assert data["data"][0]["id"] == "rec1"
    assert data["data"][0]["createdAt"] == "2023-11-14T22:13:20.000Z"
    assert runner.submitted == ["cache-warm"]


def test_get_prompts_cache_hit(client, memory_store):
    asyncio.run(memory_store.write([make_record("rec9", "Coding")], ["Coding"]))
    source = FakeSource(error=UpstreamError("should not be called"))
    runner = _install(source, memory_store)

    response = client.get("/api/prompts")
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["data"]] == ["rec9"]
    assert source.calls == 0
    assert runner.submitted == []


def test_get_prompts_configuration_error(client, memory_store):
    _install(FakeSource(error=ConfigurationError("Missing FEISHU_APP_ID")), memory_store)

    response = client.get("/api/prompts")
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "FETCH_ERROR",
        "message": "服务配置错误，请联系管理员",
    }


def test_get_prompts_transient_error(client, memory_store):
    _install(FakeSource(error=UpstreamError("timeout")), memory_store)

    response = client.get("/api/prompts")
    assert response.status_code == 500
    assert response.json()["message"] == "数据加载失败，请稍后重试"


def test_cron_requires_secret(client, memory_store):
    _install(FakeSource([make_record()]), memory_store)

    response = client.get("/api/cron/sync", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    assert client.get("/api/cron/sync").status_code == 401


def test_cron_syncs_when_stale_then_skips(client, memory_store):
    _install(FakeSource([make_record("rec1", "Coding")]), memory_store)
    headers = {"Authorization": f"Bearer {CRON_SECRET}"}

    first = client.get("/api/cron/sync", headers=headers)
    assert first.status_code == 200
    data = first.json()
    assert data["success"] is True
    assert data["synced"] is True
    assert data["promptCount"] == 1
    assert data["categoryCount"] == 1
    assert data["syncTime"].endswith("Z")

    second = client.get("/api/cron/sync", headers=headers)
    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "Cache is fresh, sync skipped", "synced": False}


def test_cron_sync_failure(client, memory_store):
    _install(FakeSource(error=UpstreamError("Feishu API error (500): boom")), memory_store)

    response = client.get("/api/cron/sync", headers={"Authorization": f"Bearer {CRON_SECRET}"})
    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Sync failed"
    assert "boom" in data["error"]


def test_webhook_health(client, memory_store):
    _install(FakeSource(), memory_store)

    response = client.get("/api/webhook/feishu")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["endpoint"] == "Feishu Webhook"
    assert data["timestamp"].endswith("Z")


def test_webhook_challenge(client, memory_store):
    _install(FakeSource(), memory_store)

    response = client.post(
        "/api/webhook/feishu",
        content=json.dumps({"type": "url_verification", "challenge": "abc", "token": "nope"}),
    )
    assert response.status_code == 200
    assert response.json() == {"challenge": "abc"}


def test_webhook_invalid_json(client, memory_store):
    _install(FakeSource(), memory_store)

    response = client.post("/api/webhook/feishu", content=b"not json")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


def test_webhook_bad_token(client, memory_store):
    runner = _install(FakeSource(), memory_store)
    event = {"header": {"event_id": "e1", "event_type": BITABLE_RECORD_CHANGED, "token": "bad"}}

    response = client.post("/api/webhook/feishu", content=json.dumps(event))
    assert response.status_code == 401
    assert runner.submitted == []


def test_webhook_replay_triggers_single_sync(client, memory_store):
    runner = _install(FakeSource([make_record()]), memory_store)
    event = {
        "header": {"event_id": "e1", "event_type": BITABLE_RECORD_CHANGED, "token": TOKEN},
        "event": {"table_id": "tbl1"},
    }

    for _ in range(2):
        response = client.post("/api/webhook/feishu", content=json.dumps(event))
        assert response.status_code == 200
        assert response.json() == {"code": 0, "msg": "ok"}

    assert runner.submitted == ["webhook-sync"]


def test_build_store_uses_memory_without_redis_url():
    store = build_store(Settings(redis_url=None, cache_ttl=120))
    assert store.backend_name == "memory"


def test_build_store_uses_redis_when_configured():
    store = build_store(Settings(redis_url="redis://localhost:6379/0"))
    assert store.backend_name == "redis"


def test_settings_reject_non_positive_values():
    with pytest.raises(ValueError, match="CACHE_TTL"):
        Settings(cache_ttl=0)


def test_redis_client_requires_url():
    with pytest.raises(ValueError):
        get_redis_client(Settings(redis_url=None))
