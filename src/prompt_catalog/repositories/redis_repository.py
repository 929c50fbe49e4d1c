"""Redis implementation of CatalogStore.

The catalog is kept under four independent keys (prompts, categories,
last sync, version), each written with its own TTL. They are written as a
non-transactional pipeline, so readers can observe a mix of two syncs or a
window where one key has expired before the others. A reader treats
"prompts present but categories absent" as a miss.
"""

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from prompt_catalog.config import settings
from prompt_catalog.entities import CachedCatalog, PromptRecord
from prompt_catalog.entities.cached_catalog import UNKNOWN_LAST_SYNC
from prompt_catalog.exceptions import DurableStoreError
from prompt_catalog.utils import format_iso, parse_iso

from .staleness import (
    CATEGORIES_KEY,
    LAST_SYNC_KEY,
    PROMPTS_KEY,
    VERSION_KEY,
    is_stale,
)

logger = logging.getLogger(__name__)


def record_to_dict(record: PromptRecord) -> dict[str, Any]:
    """Serialize a record using the camelCase field names clients expect."""
    return {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "content": record.content,
        "category": record.category,
        "tags": list(record.tags),
        "createdAt": format_iso(record.created_at),
        "updatedAt": format_iso(record.updated_at),
    }


def record_from_dict(data: dict[str, Any]) -> PromptRecord:
    """Rebuild a record from its cached form."""
    created_at = parse_iso(data.get("createdAt", ""))
    updated_at = parse_iso(data.get("updatedAt", ""))
    if created_at is None or updated_at is None:
        raise DurableStoreError(f"Cached record {data.get('id')!r} has invalid timestamps")
    return PromptRecord(
        id=data["id"],
        title=data["title"],
        description=data.get("description", ""),
        content=data.get("content", ""),
        category=data.get("category", ""),
        tags=list(data.get("tags") or []),
        created_at=created_at,
        updated_at=updated_at,
    )


class RedisCatalogRepository:
    """Durable catalog store backed by Redis.

    This class satisfies the CatalogStore protocol through structural
    typing - no explicit inheritance needed.

    Store failures never escape: reads degrade to a miss and writes
    report False, both after logging.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl: int | None = None,
        freshness_window: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the Redis catalog repository.

        Args:
            redis_client: asyncio Redis client (decode_responses=True).
            ttl: Time-to-live for each key in seconds.
            freshness_window: Staleness window in seconds.
            clock: Returns the current time in seconds (injectable for tests).
        """
        self._client = redis_client
        self._ttl = ttl or settings.durable_cache_ttl
        self._freshness_window = freshness_window or settings.cache_freshness_window
        self._clock = clock

    @classmethod
    def create(
        cls,
        redis_client: redis.Redis,
        ttl: int | None = None,
        freshness_window: int | None = None,
    ) -> "RedisCatalogRepository":
        """Factory method to create RedisCatalogRepository with defaults.

        Args:
            redis_client: asyncio Redis client.
            ttl: Key TTL in seconds. If None, uses settings.
            freshness_window: Staleness window. If None, uses settings.

        Returns:
            Configured RedisCatalogRepository
        """
        return cls(redis_client=redis_client, ttl=ttl, freshness_window=freshness_window)

    @property
    def backend_name(self) -> str:
        return "redis"

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    async def read(self) -> CachedCatalog | None:
        """Read the four catalog keys in a single round trip.

        Returns:
            CachedCatalog, or None if prompts or categories are missing
        """
        try:
            raw_prompts, raw_categories, last_sync, raw_version = await self._client.mget(
                [PROMPTS_KEY, CATEGORIES_KEY, LAST_SYNC_KEY, VERSION_KEY]
            )
            if raw_prompts is None or raw_categories is None:
                return None
            categories = json.loads(raw_categories)
            if not isinstance(categories, list):
                raise DurableStoreError("Cached categories are not a list")
            return CachedCatalog(
                prompts=self._decode_prompts(raw_prompts),
                categories=categories,
                last_sync=last_sync or UNKNOWN_LAST_SYNC,
                version=int(raw_version) if raw_version else 0,
            )
        except (RedisError, DurableStoreError, ValueError) as e:
            logger.error("Failed to get data from Redis: %s", e)
            return None

    async def read_stale(self) -> CachedCatalog | None:
        """Redis keeps nothing past TTL; retry the read in case another request warmed it."""
        return await self.read()

    async def write(self, prompts: list[PromptRecord], categories: list[str]) -> bool:
        """Overwrite all four keys and bump the version.

        Args:
            prompts: Records to cache
            categories: Category labels

        Returns:
            True on success, False if any Redis call failed
        """
        try:
            now = format_iso(self._now())
            current = await self._client.get(VERSION_KEY)
            version = (int(current) if current else 0) + 1

            payload = json.dumps([record_to_dict(p) for p in prompts], ensure_ascii=False)
            async with self._client.pipeline(transaction=False) as pipe:
                pipe.set(PROMPTS_KEY, payload, ex=self._ttl)
                pipe.set(CATEGORIES_KEY, json.dumps(categories, ensure_ascii=False), ex=self._ttl)
                pipe.set(LAST_SYNC_KEY, now, ex=self._ttl)
                pipe.set(VERSION_KEY, version, ex=self._ttl)
                await pipe.execute()

            logger.info("Redis cache updated at %s, version: %d", now, version)
            return True
        except (RedisError, ValueError, TypeError) as e:
            logger.error("Failed to set data to Redis: %s", e)
            return False

    async def invalidate(self) -> None:
        """Delete prompts, categories and last sync. The version key is kept."""
        try:
            await self._client.delete(PROMPTS_KEY, CATEGORIES_KEY, LAST_SYNC_KEY)
            logger.info("Redis cache invalidated")
        except RedisError as e:
            logger.error("Failed to invalidate Redis cache: %s", e)

    async def last_sync_time(self) -> datetime | None:
        """Read the last sync timestamp.

        Returns:
            Parsed timestamp, or None if missing, unparseable or unreachable
        """
        try:
            value = await self._client.get(LAST_SYNC_KEY)
        except RedisError as e:
            logger.error("Failed to get last sync time: %s", e)
            return None
        return parse_iso(value) if value else None

    async def is_stale(self) -> bool:
        return is_stale(await self.last_sync_time(), self._now(), self._freshness_window)

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @staticmethod
    def _decode_prompts(raw: str) -> list[PromptRecord]:
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DurableStoreError(f"Cached prompts are not valid JSON: {e}") from e
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise DurableStoreError("Cached prompts are not a list of objects")
        try:
            return [record_from_dict(item) for item in items]
        except (KeyError, TypeError) as e:
            raise DurableStoreError(f"Cached prompts have an unexpected shape: {e}") from e
