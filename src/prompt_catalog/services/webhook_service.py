"""Feishu webhook ingestion.

Each inbound request walks a fixed pipeline:

1. Parse the raw body as JSON (400 on failure)
2. Decrypt an ``encrypt`` envelope when an encrypt key is configured
3. Echo URL verification challenges
4. Check the verification token (401 on mismatch)
5. Check the request signature when one is supplied (401 on mismatch)
6. Drop replays of an already seen event id
7. Trigger a background sync for record-changed events on the target table
8. Acknowledge with ``{"code": 0, "msg": "ok"}``

Anything that goes wrong after step 1 is logged and still acknowledged, so
Feishu never retries a delivery because of a condition it cannot fix.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from prompt_catalog.exceptions import WebhookValidationError

from .background import BackgroundTaskRunner
from .event_registry import ProcessedEventRegistry
from .sync_service import SyncService
from .webhook_crypto import (
    decrypt_event,
    event_header,
    is_bitable_record_changed,
    is_url_verification,
    verify_signature,
)

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "x-lark-request-timestamp"
NONCE_HEADER = "x-lark-request-nonce"
SIGNATURE_HEADER = "x-lark-signature"

ACK = {"code": 0, "msg": "ok"}


@dataclass(frozen=True)
class WebhookOutcome:
    """HTTP status and JSON body to answer a webhook delivery with."""

    status_code: int
    body: dict[str, Any] = field(default_factory=lambda: dict(ACK))
    sync_triggered: bool = False


class WebhookService:
    """Validates Feishu event deliveries and triggers syncs."""

    def __init__(
        self,
        sync_service: SyncService,
        registry: ProcessedEventRegistry,
        runner: BackgroundTaskRunner,
        encrypt_key: str = "",
        verification_token: str = "",
        target_table_id: str | None = None,
    ) -> None:
        """Initialize the webhook service.

        Args:
            sync_service: Sync to trigger on relevant events (required).
            registry: Processed event ids, owned by the caller (required).
            runner: Background context the sync runs in (required).
            encrypt_key: Feishu encrypt key; enables decryption and signature checks.
            verification_token: Feishu verification token; enables token checks.
            target_table_id: Only events for this table trigger a sync.
        """
        self._sync = sync_service
        self._registry = registry
        self._runner = runner
        self._encrypt_key = encrypt_key
        self._verification_token = verification_token
        self._target_table_id = target_table_id

    async def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> WebhookOutcome:
        """Process one delivery.

        Args:
            raw_body: Request body exactly as received
            headers: Request headers (case-insensitive mapping or lower-cased keys)

        Returns:
            WebhookOutcome to send back
        """
        try:
            payload = self._parse(raw_body)
        except WebhookValidationError as e:
            return WebhookOutcome(status_code=e.status_code, body={"error": e.message})

        try:
            if is_url_verification(payload):
                logger.info("Responding to URL verification challenge")
                return WebhookOutcome(status_code=200, body={"challenge": payload["challenge"]})

            self._check_token(payload)
            self._check_signature(raw_body, headers)

            header = event_header(payload)
            event_id = header.get("event_id")
            if event_id and not self._registry.admit(event_id):
                logger.info("Event %s already processed, skipping", event_id)
                return WebhookOutcome(status_code=200)

            return WebhookOutcome(status_code=200, sync_triggered=self._dispatch(payload))
        except WebhookValidationError as e:
            return WebhookOutcome(status_code=e.status_code, body={"error": e.message})
        except Exception as e:
            logger.exception("Webhook processing error: %s", e)
            return WebhookOutcome(status_code=200, body={"code": 0, "msg": "error handled"})

    def _parse(self, raw_body: bytes) -> dict[str, Any]:
        try:
            parsed = json.loads(raw_body)
            if not isinstance(parsed, dict):
                raise ValueError("payload is not a JSON object")
            if parsed.get("encrypt") and self._encrypt_key:
                parsed = json.loads(decrypt_event(parsed["encrypt"], self._encrypt_key))
                if not isinstance(parsed, dict):
                    raise ValueError("decrypted payload is not a JSON object")
            return parsed
        except (ValueError, TypeError) as e:
            logger.error("Failed to parse webhook payload: %s", e)
            raise WebhookValidationError(400, "Invalid JSON") from e

    def _check_token(self, payload: dict[str, Any]) -> None:
        if not self._verification_token:
            return
        header = event_header(payload)
        event_token = header.get("token") or payload.get("token")
        if event_token != self._verification_token:
            logger.error("Token verification failed")
            raise WebhookValidationError(401, "Unauthorized")

    def _check_signature(self, raw_body: bytes, headers: Mapping[str, str]) -> None:
        if not self._encrypt_key:
            return
        signature = _header(headers, SIGNATURE_HEADER)
        if not signature:
            return
        timestamp = _header(headers, TIMESTAMP_HEADER)
        nonce = _header(headers, NONCE_HEADER)
        if not verify_signature(timestamp, nonce, raw_body, signature, self._encrypt_key):
            logger.error("Signature verification failed")
            raise WebhookValidationError(401, "Invalid signature")

    def _dispatch(self, payload: dict[str, Any]) -> bool:
        if not is_bitable_record_changed(payload):
            return False

        event = payload.get("event")
        if not isinstance(event, dict):
            event = {}
        logger.info("Bitable record changed, triggering sync...")
        logger.debug("Event details: %s", event)

        if self._target_table_id and event.get("table_id") != self._target_table_id:
            logger.info("Event is for a different table, ignoring")
            return False

        self._runner.submit(self._run_sync(), name="webhook-sync")
        logger.info("Sync triggered successfully")
        return True

    async def _run_sync(self) -> None:
        result = await self._sync.sync()
        if not result.success:
            logger.error("Sync failed: %s", result.error)


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return value or ""
