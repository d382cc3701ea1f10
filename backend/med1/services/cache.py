"""
Redis caching for per-doctor dashboard statistics and profiles.

Every operation degrades to a cache miss when Redis is disabled or
unreachable, so callers never need to handle cache errors.
"""

import json
import logging
import time
from typing import Any, Callable, Optional, TypeVar

import redis
from redis.exceptions import RedisError

from ..core.config import settings


logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheService:
    """
    Redis-based caching service with fallback to no-cache.

    Keys are namespaced per doctor so that one doctor's writes only
    invalidate their own entries.
    """

    PREFIX_DASHBOARD = "med1:dashboard"
    PREFIX_PROFILE = "med1:profile"

    def __init__(self):
        self._redis: Optional[redis.Redis] = None
        self._connected = False
        self._connect()

    def _connect(self) -> None:
        if not settings.cache_enabled:
            logger.info("Caching disabled by configuration")
            return

        try:
            self._redis = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            self._redis.ping()
            self._connected = True
            logger.info("Redis cache connected successfully")
        except RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Operating without cache.")
            self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected and self._redis is not None

    def _ensure_connection(self) -> bool:
        """Ensure Redis connection is active, attempt reconnect if needed."""
        if not settings.cache_enabled:
            return False

        if self.is_connected:
            try:
                self._redis.ping()
                return True
            except RedisError:
                self._connected = False

        self._connect()
        return self.is_connected

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on miss or error."""
        if not self._ensure_connection():
            return None

        try:
            value = self._redis.get(key)
            if value:
                return json.loads(value)
            return None
        except (RedisError, json.JSONDecodeError) as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self._ensure_connection():
            return False

        try:
            serialized = json.dumps(value, default=str)
            if ttl:
                self._redis.setex(key, ttl, serialized)
            else:
                self._redis.set(key, serialized)
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    def delete(self, *keys: str) -> bool:
        if not keys or not self._ensure_connection():
            return False

        try:
            self._redis.delete(*keys)
            return True
        except RedisError as e:
            logger.warning(f"Cache delete error for {keys}: {e}")
            return False

    def get_or_compute(self, key: str, compute_func: Callable[[], T], ttl: int = 60) -> T:
        """Return the cached value for ``key`` or compute, store and return it."""
        cached = self.get(key)
        if cached is not None:
            return cached

        value = compute_func()
        self.set(key, value, ttl=ttl)
        return value

    # ==========================================================================
    # Per-doctor keys
    # ==========================================================================

    def dashboard_key(self, user_id: Any) -> str:
        return f"{self.PREFIX_DASHBOARD}:{user_id}"

    def profile_key(self, user_id: Any) -> str:
        return f"{self.PREFIX_PROFILE}:{user_id}"

    def invalidate_user(self, user_id: Any) -> None:
        """Drop the dashboard and profile entries of one doctor."""
        if self.delete(self.dashboard_key(user_id), self.profile_key(user_id)):
            logger.debug(f"Cache invalidated for user {user_id}")

    # ==========================================================================
    # Health
    # ==========================================================================

    def health_check(self) -> dict:
        """
        Check Redis health and return status.

        Returns:
            Dict with health status and latency
        """
        if not settings.cache_enabled:
            return {"status": "disabled", "connected": False}

        if not self._ensure_connection():
            return {
                "status": "unhealthy",
                "connected": False,
                "error": "Not connected to Redis",
            }

        try:
            latency_start = time.time()
            self._redis.ping()
            latency_ms = (time.time() - latency_start) * 1000
            return {
                "status": "healthy",
                "connected": True,
                "latency_ms": round(latency_ms, 2),
            }
        except RedisError as e:
            return {
                "status": "unhealthy",
                "connected": False,
                "error": str(e),
            }


_cache_service: Optional[CacheService] = None


def get_cache() -> CacheService:
    """
    Get global cache service instance.

    Creates instance on first call (lazy initialization).
    """
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService()
    return _cache_service
