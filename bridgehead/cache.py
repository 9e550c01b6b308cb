"""
Optional Redis cache for read-heavy aggregates.

When ENABLE_REDIS_CACHE is off, or Redis cannot be reached, every lookup is a
miss and callers fall through to the database.
"""

import json
import logging
from typing import Any, Dict, Optional

import redis

from bridgehead.config import ENABLE_REDIS_CACHE, REDIS_URL

logger = logging.getLogger(__name__)


class RedisCache:
    """Thin JSON get/set wrapper around a lazily created Redis client."""

    def __init__(self, url: str = REDIS_URL, enabled: bool = ENABLE_REDIS_CACHE):
        self._url = url
        self._enabled = enabled
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> Optional[redis.Redis]:
        if not self._enabled:
            return None
        if self._client is None:
            self._client = redis.Redis.from_url(self._url, socket_connect_timeout=2, decode_responses=True)
        return self._client

    def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    def get(self, key: str) -> Optional[Any]:
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning("Redis GET %s failed: %s", key, e)
            return None
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.set(key, json.dumps(value, default=str), ex=ttl_seconds))
        except redis.RedisError as e:
            logger.warning("Redis SET %s failed: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.delete(key))
        except redis.RedisError as e:
            logger.warning("Redis DELETE %s failed: %s", key, e)
            return False

    def round_trip(self, key: str = "health_check_test") -> Dict[str, bool]:
        """Write, read back and remove a throwaway value."""
        sentinel = "ok"
        stored = self.set(key, sentinel, 60)
        read_back = self.get(key) == sentinel
        removed = self.delete(key)
        return {"set": stored, "get": read_back, "delete": removed}


redis_client = RedisCache()
