"""
Response and lookup cache

MemoryCache keeps values in-process with a TTL; RedisCache shares them
across workers. get_cache() picks Redis when REDIS_URL is configured.
"""
import copy
import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import redis
from redis.exceptions import RedisError
from fastapi.encoders import jsonable_encoder

from app.core.config import settings

logger = logging.getLogger(__name__)


class CacheBackend:
    """Interface shared by cache implementations"""

    def get(self, key: str) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def delete_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryCache(CacheBackend):
    """In-memory TTL cache guarded by a lock"""

    def __init__(self, default_ttl: int = 300):
        self.default_ttl = default_ttl
        self._cache: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and time.time() > expires_at:
                del self._cache[key]
                return None

            # Copy so callers cannot mutate the cached value
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = time.time() + ttl if ttl > 0 else None
        with self._lock:
            self._cache[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._cache if key.startswith(prefix)]
            for key in keys:
                del self._cache[key]
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class RedisCache(CacheBackend):
    """Redis-backed cache; values are stored as JSON under a key prefix"""

    def __init__(self, url: str, prefix: str = "shopdev:", default_ttl: int = 300):
        self.prefix = prefix
        self.default_ttl = default_ttl
        self.client = redis.Redis.from_url(url, decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Any:
        try:
            raw = self.client.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        payload = json.dumps(jsonable_encoder(value))
        try:
            if ttl > 0:
                self.client.setex(self._key(key), ttl, payload)
            else:
                self.client.set(self._key(key), payload)
        except RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis delete failed for {key}: {e}")

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        try:
            for full_key in self.client.scan_iter(match=f"{self._key(prefix)}*"):
                removed += self.client.delete(full_key)
        except RedisError as e:
            logger.warning(f"Redis prefix delete failed for {prefix}: {e}")
        return removed

    def clear(self) -> None:
        self.delete_prefix("")


class NullCache(CacheBackend):
    """Used when CACHE_ENABLED is false"""

    def get(self, key: str) -> Any:
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def delete_prefix(self, prefix: str) -> int:
        return 0

    def clear(self) -> None:
        return None


_cache: Optional[CacheBackend] = None


def get_cache() -> CacheBackend:
    """Return the process-wide cache backend, creating it on first use"""
    global _cache
    if _cache is None:
        if not settings.CACHE_ENABLED:
            _cache = NullCache()
        elif settings.REDIS_URL:
            _cache = RedisCache(
                settings.REDIS_URL,
                prefix=settings.CACHE_KEY_PREFIX,
                default_ttl=settings.CACHE_DEFAULT_TTL,
            )
            logger.info("Using Redis cache")
        else:
            _cache = MemoryCache(default_ttl=settings.CACHE_DEFAULT_TTL)
            logger.info("Using in-memory cache")
    return _cache
