import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Feishu app credentials
    feishu_app_id: str | None = os.getenv("FEISHU_APP_ID")
    feishu_app_secret: str | None = os.getenv("FEISHU_APP_SECRET")

    # Bitable source table
    feishu_bitable_app_token: str | None = os.getenv("FEISHU_BITABLE_APP_TOKEN")
    feishu_bitable_table_id: str | None = os.getenv("FEISHU_BITABLE_TABLE_ID")
    feishu_api_base: str = os.getenv("FEISHU_API_BASE", "https://open.feishu.cn/open-apis")
    feishu_page_size: int = int(os.getenv("FEISHU_PAGE_SIZE", "100"))
    feishu_max_pages: int = int(os.getenv("FEISHU_MAX_PAGES", "1000"))
    feishu_request_timeout: float = float(os.getenv("FEISHU_REQUEST_TIMEOUT", "30"))

    # Webhook
    feishu_encrypt_key: str = os.getenv("FEISHU_ENCRYPT_KEY", "")
    feishu_verification_token: str = os.getenv("FEISHU_VERIFICATION_TOKEN", "")
    feishu_webhook_table_id: str | None = os.getenv(
        "FEISHU_WEBHOOK_TABLE_ID", os.getenv("FEISHU_BITABLE_TABLE_ID")
    )
    processed_events_capacity: int = int(os.getenv("PROCESSED_EVENTS_CAPACITY", "1000"))

    # Cron
    cron_secret: str = os.getenv("CRON_SECRET", "")

    # Cache
    cache_ttl: int = int(os.getenv("CACHE_TTL", "300"))  # in-memory fallback, 5 minutes
    durable_cache_ttl: int = int(os.getenv("DURABLE_CACHE_TTL", "3600"))
    cache_freshness_window: int = int(os.getenv("CACHE_FRESHNESS_WINDOW", "3600"))

    # Redis (durable store). Leaving REDIS_URL unset selects the memory fallback.
    redis_url: str | None = os.getenv("REDIS_URL")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def use_durable_cache(self) -> bool:
        """Check whether a durable store is configured.

        Returns:
            True if Redis credentials are present, False for the memory fallback
        """
        return bool(self.redis_url)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in (
            "cache_ttl",
            "durable_cache_ttl",
            "cache_freshness_window",
            "feishu_page_size",
            "feishu_max_pages",
            "processed_events_capacity",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive, got {getattr(self, name)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create an asyncio Redis client instance."""
    config = config or settings
    if not config.redis_url:
        raise ValueError("REDIS_URL is not configured")
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=True,
    )
