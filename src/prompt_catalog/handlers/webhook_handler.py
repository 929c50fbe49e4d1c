"""HTTP handler for the Feishu webhook endpoint."""

from fastapi import Request
from fastapi.responses import JSONResponse

from prompt_catalog.dto import WebhookHealthResponse
from prompt_catalog.services import WebhookService
from prompt_catalog.utils import format_iso, utc_now


class WebhookHandler:
    """HTTP handler for /api/webhook/feishu."""

    def __init__(self, webhook_service: WebhookService) -> None:
        """Initialize the webhook handler.

        Args:
            webhook_service: The webhook ingestion service (required).
        """
        self._webhook = webhook_service

    async def receive(self, request: Request) -> JSONResponse:
        """Handle POST /api/webhook/feishu requests.

        The raw body is read before any parsing so the signature is checked
        against the exact bytes Feishu signed.
        """
        raw_body = await request.body()
        outcome = await self._webhook.handle(raw_body, request.headers)
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)

    async def health(self) -> WebhookHealthResponse:
        """Handle GET /api/webhook/feishu requests."""
        return WebhookHealthResponse(timestamp=format_iso(utc_now()))
