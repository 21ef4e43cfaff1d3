from cache.client import RedisClient
from cache.keys import SETTINGS_CACHE_TTL, CacheKeys

__all__ = [
    "SETTINGS_CACHE_TTL",
    "CacheKeys",
    "RedisClient",
]
