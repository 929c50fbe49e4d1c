"""Response DTOs for API endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from prompt_catalog.utils import format_iso


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PromptItem(CamelModel):
    """Single prompt in the catalog."""

    id: str = Field(..., description="Feishu record id")
    title: str = Field(..., description="Prompt title", min_length=1)
    description: str = Field("", description="Short description")
    content: str = Field("", description="Full prompt text")
    category: str = Field("", description="Category label, may be empty")
    tags: list[str] = Field(default_factory=list, description="Tag labels")
    created_at: datetime = Field(..., description="Fetch time of the record")
    updated_at: datetime = Field(..., description="Fetch time of the record")

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_iso(value)


class PromptsResponse(CamelModel):
    """Response DTO for GET /api/prompts."""

    success: Literal[True] = True
    data: list[PromptItem] = Field(default_factory=list, description="Catalog entries")
    total: int = Field(..., description="Number of entries in data", ge=0)
    categories: list[str] = Field(default_factory=list, description="Sorted category labels")


class ErrorResponse(CamelModel):
    """Response DTO for a failed catalog read."""

    success: Literal[False] = False
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="User-facing localized message")


class CronSyncResponse(CamelModel):
    """Response DTO for GET /api/cron/sync."""

    success: bool = Field(..., description="Whether the cron run succeeded")
    message: str = Field(..., description="Human-readable status message")
    synced: bool = Field(..., description="Whether a sync was attempted")
    prompt_count: int | None = Field(None, description="Prompts written by the sync", ge=0)
    category_count: int | None = Field(None, description="Categories written by the sync", ge=0)
    sync_time: datetime | None = Field(None, description="When the sync started")
    error: str | None = Field(None, description="Failure reason")

    @field_serializer("sync_time")
    def _serialize_sync_time(self, value: datetime | None) -> str | None:
        return format_iso(value) if value is not None else None


class WebhookHealthResponse(CamelModel):
    """Response DTO for GET /api/webhook/feishu."""

    status: str = "ok"
    endpoint: str = "Feishu Webhook"
    timestamp: str = Field(..., description="Current server time, ISO-8601")


class HealthCheckResponse(CamelModel):
    """Response DTO for GET /health."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_backend: str = Field(..., description="Cache backend in use: 'redis' or 'memory'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
