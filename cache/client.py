"""Thin async wrapper around Upstash Redis HTTP client."""

import structlog
from upstash_redis.asyncio import Redis as AsyncRedis

log = structlog.get_logger()


class RedisClient:
    """Async Redis client backed by Upstash REST API.

    HTTP-based and stateless -- only the settings snapshot lives here.
    """

    def __init__(self, url: str, token: str) -> None:
        self._redis = AsyncRedis(url=url, token=token)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> str | None:
        """Set key-value with optional TTL (ex)."""
        return await self._redis.set(key, value, ex=ex)

    async def delete(self, *keys: str) -> int:
        return await self._redis.delete(*keys)

    async def ping(self) -> bool:
        """Check Redis connectivity. Returns True if healthy."""
        try:
            result = await self._redis.ping()
            return result == "PONG"
        except Exception:
            log.warning("redis_ping_failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._redis.close()
