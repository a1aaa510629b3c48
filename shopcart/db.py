"""
Redis Client - Upstash Redis singleton for cart storage and event streams.

Uses standard Upstash env var names:
- UPSTASH_REDIS_REST_URL
- UPSTASH_REDIS_REST_TOKEN
"""

from typing import Optional

from upstash_redis import Redis

from . import config

# Singleton instance
_redis_client: Optional[Redis] = None


def get_redis() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Used for:
    - Cart storage (RedisStore)
    - Cart event streams (RedisStreamNotifier)
    """
    global _redis_client

    if _redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = Redis(url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN)

    return _redis_client
