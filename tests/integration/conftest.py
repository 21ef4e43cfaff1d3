"""Shared fixtures for integration tests.

Integration tests send real HTTP requests through the full
middleware -> auth -> handler -> service -> repository pipeline,
with PostgREST and Redis replaced by in-memory mocks.
"""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest

from tests.unit.db.repositories.conftest import MockResponse, MockSupabaseClient

# Re-export for convenience in sub-conftest files
__all__ = [
    "MockRedisClient",
    "MockResponse",
    "MockSupabaseClient",
]

INTERNAL_TOKEN = "internal_token_secret"  # noqa: S105
HEALTH_TOKEN = "health_token_secret"  # noqa: S105


# ---------------------------------------------------------------------------
# In-memory Redis mock (deterministic, zero infra)
# ---------------------------------------------------------------------------


class MockRedisClient:
    """Async in-memory Redis that mimics cache.client.RedisClient interface.

    Supports: get, set (with ex), delete, ping.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._ttls: dict[str, float] = {}

    def _is_expired(self, key: str) -> bool:
        if key in self._ttls and time.monotonic() > self._ttls[key]:
            del self._store[key]
            del self._ttls[key]
            return True
        return False

    async def get(self, key: str) -> str | None:
        self._is_expired(key)
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> str | None:
        self._store[key] = str(value)
        if ex is not None:
            self._ttls[key] = time.monotonic() + ex
        return "OK"

    async def delete(self, *keys: str) -> int:
        count = 0
        for k in keys:
            if k in self._store:
                del self._store[k]
                self._ttls.pop(k, None)
                count += 1
        return count

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def clear(self) -> None:
        self._store.clear()
        self._ttls.clear()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_redis() -> MockRedisClient:
    """In-memory Redis mock."""
    return MockRedisClient()


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Reuse MockSupabaseClient from unit tests."""
    return MockSupabaseClient()


@pytest.fixture
def mock_settings() -> MagicMock:
    """Mock Settings with sensible defaults."""
    settings = MagicMock()
    settings.internal_api_token = MagicMock()
    settings.internal_api_token.get_secret_value.return_value = INTERNAL_TOKEN
    settings.health_check_token = MagicMock()
    settings.health_check_token.get_secret_value.return_value = HEALTH_TOKEN
    settings.supabase_url = "https://fake.supabase.co"
    settings.billing_api_url = "https://panel.test/api/billing"
    settings.settings_cache_ttl = 60
    settings.log_level = "INFO"
    return settings
