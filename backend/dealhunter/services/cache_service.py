"""TTL cache services for aggregated deal responses.

Two interchangeable backends share one async interface (string values,
per-entry TTL):

- MemoryCacheService: process-local dict, the default
- RedisCacheService: shared Redis instance, enabled with CACHE_BACKEND=redis

The process-wide instance is created lazily by get_cache_service(); tests
and callers that need isolation construct their own instance instead.
"""

import time
from typing import Callable, Dict, Optional, Tuple

import structlog
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from dealhunter.config import settings

logger = structlog.get_logger(__name__)


class CacheService:
    """Interface implemented by every cache backend."""

    default_ttl: int = settings.CACHE_TTL_SECONDS

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError

    async def health_check(self) -> bool:
        return True

    def stats(self) -> Dict[str, int]:
        return {"ttl": self.default_ttl}

    async def close(self) -> None:
        return None


class MemoryCacheService(CacheService):
    """In-process TTL cache.

    Entries expire a fixed duration after they were written and are dropped
    lazily on the next read. There is no size bound.
    """

    def __init__(
        self,
        default_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache service.

        Args:
            default_ttl: TTL in seconds used when set() gets none
                (default: CACHE_TTL_SECONDS)
            clock: Monotonic time source, injectable for tests
        """
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_TTL_SECONDS
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}
        self.logger = logger.bind(service="cache_service", backend="memory")

    async def get(self, key: str) -> Optional[str]:
        """Get a live value from cache.

        Returns:
            Cached value, or None if missing or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            self.logger.debug("cache_miss", key=key)
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self.logger.debug("cache_expired", key=key)
            return None

        self.logger.debug("cache_hit", key=key)
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Store a value, replacing any previous entry for the key."""
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + ttl, value)
        self.logger.debug("cache_set", key=key, ttl=ttl, value_length=len(value))
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        self._entries.clear()
        self.logger.info("cache_cleared")

    def stats(self) -> Dict[str, int]:
        """Report entry count (expired entries included) and default TTL."""
        return {"size": len(self._entries), "ttl": self.default_ttl}


class RedisCacheService(CacheService):
    """Async Redis cache service.

    Redis failures are logged and reported as a miss or a failed write, so
    an unavailable Redis only costs an extra fan-out.
    """

    def __init__(self, redis_url: str, default_ttl: Optional[int] = None, key_prefix: str = "dealhunter:"):
        """Initialize cache service.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            default_ttl: TTL in seconds used when set() gets none
            key_prefix: Namespace prepended to every key
        """
        self.redis_url = redis_url
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_TTL_SECONDS
        self.key_prefix = key_prefix
        self._redis: Optional[Redis] = None
        self.logger = logger.bind(service="cache_service", backend="redis")

    async def _get_redis(self) -> Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self.logger.info("redis_connection_created", url=self.redis_url)

        return self._redis

    async def get(self, key: str) -> Optional[str]:
        try:
            redis = await self._get_redis()
            value = await redis.get(self.key_prefix + key)

            if value:
                self.logger.debug("cache_hit", key=key)
            else:
                self.logger.debug("cache_miss", key=key)

            return value

        except RedisError as e:
            self.logger.error("cache_get_failed", key=key, error=str(e), exc_info=True)
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        try:
            redis = await self._get_redis()
            await redis.set(self.key_prefix + key, value, ex=ttl)
            self.logger.debug("cache_set", key=key, ttl=ttl, value_length=len(value))
            return True

        except RedisError as e:
            self.logger.error("cache_set_failed", key=key, error=str(e), exc_info=True)
            return False

    async def delete(self, key: str) -> bool:
        try:
            redis = await self._get_redis()
            result = await redis.delete(self.key_prefix + key)
            return bool(result)

        except RedisError as e:
            self.logger.error("cache_delete_failed", key=key, error=str(e), exc_info=True)
            return False

    async def clear(self) -> None:
        """Delete every key under this service's prefix."""
        try:
            redis = await self._get_redis()
            keys = [key async for key in redis.scan_iter(match=f"{self.key_prefix}*", count=100)]
            if keys:
                await redis.delete(*keys)
            self.logger.info("cache_cleared", keys_deleted=len(keys))

        except RedisError as e:
            self.logger.error("cache_clear_failed", error=str(e), exc_info=True)

    async def health_check(self) -> bool:
        try:
            redis = await self._get_redis()
            await redis.ping()
            return True

        except RedisError as e:
            self.logger.error("redis_health_check_failed", error=str(e), exc_info=True)
            return False

    async def close(self) -> None:
        """Close Redis connection.

        This should be called on application shutdown.
        """
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("redis_connection_closed")


def cache_key_for_deals(search_query: str = "") -> str:
    """Generate cache key for an aggregation cycle.

    Clearance listings and each distinct search query get their own key;
    the "search" segment keeps a query named "clearance" from colliding.
    """
    if not search_query:
        return "deals:clearance"
    return f"deals:search:{search_query}"


# Global cache instance
_cache_instance: Optional[CacheService] = None


def create_cache_service(backend: Optional[str] = None) -> CacheService:
    """Build a cache service for the given backend name."""
    backend = (backend or settings.CACHE_BACKEND).lower()
    if backend == "redis":
        return RedisCacheService(settings.REDIS_URL)
    if backend == "memory":
        return MemoryCacheService()
    raise ValueError(f"Unsupported cache backend: {backend}")


def get_cache_service() -> CacheService:
    """Get or create the global cache service instance."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = create_cache_service()
        logger.info("cache_service_initialized", backend=settings.CACHE_BACKEND)

    return _cache_instance


def reset_cache_service() -> None:
    """Forget the global instance so the next call builds a fresh one."""
    global _cache_instance
    _cache_instance = None


async def get_cache() -> CacheService:
    """FastAPI dependency for cache service.

    Usage:
        @router.get("/endpoint")
        async def endpoint(cache: CacheService = Depends(get_cache)):
            ...
    """
    return get_cache_service()
