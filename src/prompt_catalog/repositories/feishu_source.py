"""Feishu Bitable prompt source.

Reads the prompt table through the Feishu open API:

1. Exchange app id/secret for a tenant access token (cached on the instance
   until shortly before it expires)
2. Page through ``/bitable/v1/apps/{app_token}/tables/{table_id}/records``
3. Normalize each record into a PromptRecord

Field names are accepted in two vocabularies: the canonical English names
(``title``, ``description``, ``content``, ``category``, ``tags``) and the
localized aliases used by older tables (``名字``, ``描述``, ``内容``, ``tag``).
"""

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

import httpx

from prompt_catalog.config import settings
from prompt_catalog.entities import PromptRecord
from prompt_catalog.exceptions import (
    ConfigurationError,
    RecordNormalizationError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# canonical field name -> localized alias
FIELD_ALIASES = {
    "title": "名字",
    "description": "描述",
    "content": "内容",
    "category": "tag",
}

# Refresh the tenant token this many seconds before it expires
TOKEN_EXPIRY_BUFFER = 60
DEFAULT_TOKEN_LIFETIME = 7200


def extract_text_value(value: Any) -> str:
    """Extract plain text from a string or a list of rich-text segments.

    Args:
        value: Raw Bitable field value

    Returns:
        The text, segments concatenated in order; "" for empty or unknown shapes

    Raises:
        RecordNormalizationError: If a segment list holds something other than
            segments or strings
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for segment in value:
            if isinstance(segment, dict):
                parts.append(str(segment.get("text") or ""))
            elif isinstance(segment, str):
                parts.append(segment)
            else:
                raise RecordNormalizationError(f"Unsupported text segment: {segment!r}")
        return "".join(parts)
    return ""


def extract_category_value(value: Any) -> str:
    """Extract a single category from a string or a list (first element wins)."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        first = value[0]
        if not first:
            return ""
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            return extract_text_value([first])
        if isinstance(first, (int, float)):
            return str(first)
        raise RecordNormalizationError(f"Unsupported category value: {first!r}")
    return ""


def _field(fields: dict[str, Any], name: str) -> Any:
    """Canonical field value if set, otherwise its localized alias."""
    return fields.get(name) or fields.get(FIELD_ALIASES[name])


def transform_record(record_id: Any, fields: Any, fetched_at: datetime) -> PromptRecord:
    """Convert one Bitable record into a PromptRecord.

    Upstream timestamps are not trusted; both created_at and updated_at are
    stamped with ``fetched_at``.

    Raises:
        RecordNormalizationError: If the record cannot be normalized
    """
    if not isinstance(record_id, str) or not record_id:
        raise RecordNormalizationError(f"Invalid record_id: {record_id!r}")
    if not isinstance(fields, dict):
        raise RecordNormalizationError(f"Record {record_id} has no field mapping")

    raw_tags = fields.get("tags")
    tags = [str(tag) for tag in raw_tags if tag is not None] if isinstance(raw_tags, list) else []

    return PromptRecord(
        id=record_id,
        title=extract_text_value(_field(fields, "title")),
        description=extract_text_value(_field(fields, "description")),
        content=extract_text_value(_field(fields, "content")),
        category=extract_category_value(_field(fields, "category")),
        tags=tags,
        created_at=fetched_at,
        updated_at=fetched_at,
    )


def extract_categories(records: Iterable[PromptRecord]) -> list[str]:
    """Collect the distinct non-empty categories, sorted ascending."""
    return sorted({record.category for record in records if record.category})


class FeishuBitableSource:
    """Feishu Bitable implementation of the PromptSource protocol.

    Example:
        ```python
        source = FeishuBitableSource.create()
        records = await source.fetch_records()
        categories = extract_categories(records)
        await source.close()
        ```
    """

    def __init__(
        self,
        app_id: str | None = None,
        app_secret: str | None = None,
        app_token: str | None = None,
        table_id: str | None = None,
        base_url: str | None = None,
        page_size: int | None = None,
        max_pages: int | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the Feishu source.

        Args:
            app_id: Feishu app id. Defaults to settings.feishu_app_id.
            app_secret: Feishu app secret. Defaults to settings.feishu_app_secret.
            app_token: Bitable app token. Defaults to settings.
            table_id: Bitable table id. Defaults to settings.
            base_url: Open API base URL. Defaults to settings.feishu_api_base.
            page_size: Records per page request.
            max_pages: Upper bound on page requests per fetch.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client (tests inject a MockTransport client).
            clock: Returns the current time in seconds.
        """
        self._app_id = app_id if app_id is not None else settings.feishu_app_id
        self._app_secret = app_secret if app_secret is not None else settings.feishu_app_secret
        self._app_token = app_token if app_token is not None else settings.feishu_bitable_app_token
        self._table_id = table_id if table_id is not None else settings.feishu_bitable_table_id
        self._base_url = (base_url or settings.feishu_api_base).rstrip("/")
        self._page_size = page_size or settings.feishu_page_size
        self._max_pages = max_pages or settings.feishu_max_pages
        self._timeout = timeout or settings.feishu_request_timeout
        self._client = client
        self._clock = clock
        self._token: str | None = None
        self._token_expires_at = 0.0

    @classmethod
    def create(cls, **overrides: Any) -> "FeishuBitableSource":
        """Factory method to create FeishuBitableSource from settings.

        Args:
            **overrides: Any constructor argument to override

        Returns:
            Configured FeishuBitableSource
        """
        return cls(**overrides)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def get_tenant_access_token(self) -> str:
        """Return a tenant access token, reusing the cached one while valid.

        Raises:
            ConfigurationError: If app id or secret is missing
            UpstreamError: If the auth endpoint fails
        """
        if self._token and self._token_expires_at > self._clock() + TOKEN_EXPIRY_BUFFER:
            return self._token

        if not self._app_id or not self._app_secret:
            raise ConfigurationError("Missing FEISHU_APP_ID or FEISHU_APP_SECRET environment variables")

        data = await self._request(
            "POST",
            f"{self._base_url}/auth/v3/tenant_access_token/internal",
            json={"app_id": self._app_id, "app_secret": self._app_secret},
        )
        token = data.get("tenant_access_token")
        if not token:
            raise UpstreamError(f"Feishu API error: {data.get('msg') or 'no tenant_access_token'}")

        self._token = token
        self._token_expires_at = self._clock() + int(data.get("expire") or DEFAULT_TOKEN_LIFETIME)
        return token

    async def fetch_records(self) -> list[PromptRecord]:
        """Fetch and normalize every record of the configured table.

        Records without a title, duplicates of an earlier id and records
        that fail to normalize are skipped.

        Returns:
            Normalized PromptRecords in upstream order

        Raises:
            ConfigurationError: If table identifiers or credentials are missing
            UpstreamError: If any page request fails or pagination misbehaves
        """
        if not self._app_token or not self._table_id:
            raise ConfigurationError(
                "Missing FEISHU_BITABLE_APP_TOKEN or FEISHU_BITABLE_TABLE_ID environment variables"
            )

        token = await self.get_tenant_access_token()
        url = f"{self._base_url}/bitable/v1/apps/{self._app_token}/tables/{self._table_id}/records"
        headers = {"Authorization": f"Bearer {token}"}
        fetched_at = datetime.fromtimestamp(self._clock(), tz=timezone.utc)

        records: list[PromptRecord] = []
        seen_ids: set[str] = set()
        used_page_tokens: set[str] = set()
        page_token: str | None = None

        for _ in range(self._max_pages):
            params: dict[str, Any] = {"page_size": self._page_size}
            if page_token:
                params["page_token"] = page_token

            data = await self._request("GET", url, params=params, headers=headers)
            page = data.get("data") or {}

            for item in page.get("items") or []:
                record = self._normalize_item(item, fetched_at)
                if record is None:
                    continue
                if record.id in seen_ids:
                    logger.warning("Duplicate record %s in batch, skipping", record.id)
                    continue
                seen_ids.add(record.id)
                records.append(record)

            next_token = page.get("page_token") if page.get("has_more") else None
            if not next_token:
                return records
            if next_token in used_page_tokens:
                raise UpstreamError(f"Feishu pagination did not advance (page_token {next_token!r} repeated)")
            used_page_tokens.add(next_token)
            page_token = next_token

        raise UpstreamError(f"Feishu pagination exceeded {self._max_pages} pages")

    @staticmethod
    def _normalize_item(item: Any, fetched_at: datetime) -> PromptRecord | None:
        if not isinstance(item, dict):
            logger.error("Skipping malformed record item: %r", item)
            return None

        record_id = item.get("record_id")
        try:
            record = transform_record(record_id, item.get("fields"), fetched_at)
        except RecordNormalizationError as e:
            logger.error("Failed to transform record %s: %s", record_id, e)
            return None
        if not record.title:
            return None
        return record

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and unwrap the Feishu ``{code, msg, ...}`` envelope.

        Raises:
            UpstreamError: On transport errors, non-2xx status, bad JSON or code != 0
        """
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Feishu API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Feishu API returned invalid JSON ({response.status_code})") from e

        if not response.is_success or not isinstance(data, dict) or data.get("code") != 0:
            logger.error("Feishu API error details: %s", data)
            msg = data.get("msg") if isinstance(data, dict) else None
            raise UpstreamError(f"Feishu API error ({response.status_code}): {msg or 'Unknown error'}")
        return data

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
