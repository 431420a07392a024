"""
Database Module - Upstash Redis client

Provides a singleton async Upstash Redis client used as the durable
key-value store behind the cart.
"""

from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from marketplace.config import CartSettings, get_settings


# Singleton instance
_redis_client: Optional[AsyncRedis] = None


def get_redis(settings: Optional[CartSettings] = None) -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN

    Raises:
        ValueError: If the credentials are not configured
    """
    global _redis_client

    if _redis_client is None:
        settings = settings or get_settings()
        if not settings.redis_configured:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=settings.redis_url, token=settings.redis_token)

    return _redis_client


def reset_redis() -> None:
    """Drop the cached client (used when credentials change and in tests)."""
    global _redis_client
    _redis_client = None


class RedisKeys:
    """Key helpers for cart data."""

    @staticmethod
    def item_key(prefix: str, product_id: str) -> str:
        return f"{prefix}{product_id}"

    @staticmethod
    def item_pattern(prefix: str) -> str:
        return f"{prefix}*"
