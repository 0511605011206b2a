"""Redis-backed cache of link records."""

import redis.asyncio as redis
import structlog
from pydantic import ValidationError

from snaplink.core.exceptions import TransientInfrastructureError
from snaplink.core.observability import record_cache_operation
from snaplink.schemas.link import CachedLink

logger = structlog.get_logger()

# Cache key prefixes
LINK_CACHE_PREFIX = "link:"


def create_redis_client(url: str) -> redis.Redis:
    """Create a Redis client for the given URL."""
    client = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
    )
    logger.info("Redis client initialized", url=url)
    return client


class LinkCache:
    """Cache-aside accelerator for link lookups.

    Read and write errors are logged and reported as a miss (or a skipped
    write); callers always have the database to fall back to. Eviction errors
    are raised.
    """

    def __init__(self, client: redis.Redis, prefix: str = LINK_CACHE_PREFIX) -> None:
        self.client = client
        self.prefix = prefix

    def _cache_key(self, key: str) -> str:
        """Generate cache key for a link."""
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> CachedLink | None:
        """Get a link from cache by key.

        Returns None if not found in cache, unreadable, or Redis is down.
        """
        try:
            data = await self.client.get(self._cache_key(key))
        except redis.RedisError as e:
            logger.warning("Redis get error", key=key, error=str(e))
            record_cache_operation("get", "error")
            return None

        if not data:
            logger.debug("Cache miss", key=key)
            record_cache_operation("get", "miss")
            return None

        try:
            cached = CachedLink.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Corrupt cache entry", key=key, error=str(e))
            record_cache_operation("get", "error")
            return None

        logger.debug("Cache hit", key=key)
        record_cache_operation("get", "hit")
        return cached

    async def set(
        self,
        key: str,
        record: CachedLink,
        create_only: bool = False,
        expire_at: int | None = None,
    ) -> bool:
        """Cache a link by key.

        Args:
            key: The short key for the link
            record: Cacheable link fields
            create_only: Only write when no entry exists yet (SET NX)
            expire_at: Absolute expiry as Unix epoch seconds (SET EXAT)

        Returns True if the entry was written.
        """
        try:
            written = await self.client.set(
                self._cache_key(key),
                record.model_dump_json(),
                nx=create_only,
                exat=expire_at,
            )
        except redis.RedisError as e:
            logger.warning("Redis set error", key=key, error=str(e))
            record_cache_operation("set", "error")
            return False

        record_cache_operation("set", "ok" if written else "skipped")
        logger.debug("Link cached", key=key, create_only=create_only, expire_at=expire_at)
        return bool(written)

    async def delete(self, key: str) -> None:
        """Invalidate (delete) a link from cache.

        Unlike reads and writes, a failed eviction is raised as
        TransientInfrastructureError: the entry may still be serving redirects.
        """
        try:
            await self.client.delete(self._cache_key(key))
        except redis.RedisError as e:
            logger.error("Redis delete error", key=key, error=str(e))
            record_cache_operation("delete", "error")
            raise TransientInfrastructureError("Link cache unavailable") from e
        record_cache_operation("delete", "ok")
        logger.debug("Cache invalidated", key=key)

    async def close(self) -> None:
        """Close the Redis connection."""
        await self.client.aclose()
        logger.info("Redis connection closed")
