"""
Cart stores - key-value backends the CartManager reads and writes.

A store keeps JSON-compatible dicts under string keys and must hand out
independent copies: mutating a value returned by ``get`` never changes what
is stored.
"""
import copy
import json
from typing import Any, Optional, Protocol

from .config import TTL
from .db import get_redis
from .logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


class Store(Protocol):
    """Session-like key-value store consumed by CartManager."""

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Optional[dict]: ...

    def put(self, key: str, value: dict) -> None: ...

    def forget(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store. Values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[dict[str, dict]] = None):
        self._data: dict[str, dict] = copy.deepcopy(initial) if initial else {}

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Optional[dict]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: dict) -> None:
        self._data[key] = copy.deepcopy(value)

    def forget(self, key: str) -> None:
        self._data.pop(key, None)


class RedisStore:
    """
    Upstash Redis store.

    Values are JSON-encoded and written with a TTL so abandoned carts expire.
    A value that no longer decodes is deleted and reported as absent.
    """

    def __init__(self, redis: Any = None, ttl: Optional[int] = TTL.CART):
        self._redis = redis  # Lazy initialization
        self.ttl = ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def has(self, key: str) -> bool:
        return bool(self.redis.exists(key))

    def get(self, key: str) -> Optional[dict]:
        data = self.redis.get(key)
        if not data:
            return None

        try:
            value = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            # Corrupted data - clear it and treat as absent
            logger.warning(f"Corrupted cart data under {sanitize_string_for_logging(key)}: {e}")
            self.redis.delete(key)
            return None

        if not isinstance(value, dict):
            logger.warning(f"Unexpected cart payload under {sanitize_string_for_logging(key)}")
            self.redis.delete(key)
            return None
        return value

    def put(self, key: str, value: dict) -> None:
        payload = json.dumps(value, default=str)
        if self.ttl:
            self.redis.set(key, payload, ex=self.ttl)
        else:
            self.redis.set(key, payload)

    def forget(self, key: str) -> None:
        self.redis.delete(key)
