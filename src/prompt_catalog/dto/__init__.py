"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract. Field names are
snake_case in Python and camelCase on the wire.

Internal domain logic should use entities from the entities package.
"""

from .responses import (
    CronSyncResponse,
    ErrorResponse,
    HealthCheckResponse,
    PromptItem,
    PromptsResponse,
    WebhookHealthResponse,
)

__all__ = [
    "CronSyncResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "PromptItem",
    "PromptsResponse",
    "WebhookHealthResponse",
]
