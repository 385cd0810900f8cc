"""
Redis-backed store for the daily trivia set, with an in-memory fallback
"""
import json
import threading
import time
from typing import Any, Callable, Optional, Tuple

import redis
import structlog

logger = structlog.get_logger()

KEY_PREFIX = "dailyTrivia:"


class TriviaStore:
    def __init__(
        self,
        redis_url: Optional[str] = None,
        default_expire: int = 60 * 60 * 48,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_expire = default_expire
        self.redis_client = None
        # key -> (value, expires_at)
        self._memory_cache = {}
        self._lock = threading.Lock()
        self._clock = clock
        if not redis_url:
            logger.info("Trivia store using in-memory cache")
            return
        try:
            self.redis_client = redis.from_url(redis_url, decode_responses=True)
            # Test connection
            self.redis_client.ping()
            logger.info("Redis cache connected successfully")
        except redis.RedisError as e:
            logger.warning(f"Redis not available, using in-memory cache: {e}")
            self.redis_client = None

    def _memory_get(self, key: str) -> Optional[Any]:
        # Caller holds the lock
        entry = self._memory_cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._memory_cache[key]
            return None
        return value

    def _memory_set(self, key: str, value: Any, expire: Optional[int]) -> None:
        self._memory_cache[key] = (value, self._clock() + (expire or self.default_expire))

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if self.redis_client:
            value = self.redis_client.get(key)
            return json.loads(value) if value else None
        with self._lock:
            return self._memory_get(key)

    def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        """Set value in cache with expiration"""
        if self.redis_client:
            return bool(self.redis_client.setex(key, expire or self.default_expire, json.dumps(value)))
        with self._lock:
            self._memory_set(key, value, expire)
        return True

    def set_if_absent(self, key: str, value: Any, expire: Optional[int] = None) -> Tuple[bool, Any]:
        """Atomically store value unless the key exists.

        Returns (stored, current) where current is whatever the key holds afterwards.
        """
        if self.redis_client:
            stored = self.redis_client.set(key, json.dumps(value), nx=True, ex=expire or self.default_expire)
            if stored:
                return True, value
            return False, self.get(key)
        with self._lock:
            current = self._memory_get(key)
            if current is not None:
                return False, current
            self._memory_set(key, value, expire)
            return True, value

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        if self.redis_client:
            return bool(self.redis_client.delete(key))
        with self._lock:
            return self._memory_cache.pop(key, None) is not None


def daily_key(date_str: str) -> str:
    return f"{KEY_PREFIX}{date_str}"
