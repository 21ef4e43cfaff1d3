"""Redis key namespaces and TTL constants."""

# TTL values in seconds
SETTINGS_CACHE_TTL = 60  # store settings snapshot; admin updates invalidate it


class CacheKeys:
    """Redis key builders for all namespaces."""

    @staticmethod
    def store_settings() -> str:
        return "store:settings"
