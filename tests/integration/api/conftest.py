"""Fixtures for API integration tests using aiohttp TestClient."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from api.middleware import request_logging_middleware, security_headers_middleware
from services.history import PurchaseHistoryService
from services.purchases import PurchaseService
from services.settings import SettingsService
from storefront.main import setup_routes
from tests.integration.conftest import (
    INTERNAL_TOKEN,
    MockRedisClient,
    MockSupabaseClient,
)

USER_ID = 42


def _create_test_app(
    mock_db: MockSupabaseClient,
    mock_redis: MockRedisClient,
    mock_settings: MagicMock,
) -> web.Application:
    """Create aiohttp app with real route handlers and services over mocked clients.

    Mirrors storefront/main.py create_app() but injects test mocks.
    Invoicing is disabled (no billing client).
    """
    app = web.Application(middlewares=[request_logging_middleware, security_headers_middleware])

    settings_service = SettingsService(mock_db, mock_redis, cache_ttl=60)  # type: ignore[arg-type]

    # Same keys as storefront/main.py
    app["settings"] = mock_settings
    app["db"] = mock_db
    app["redis"] = mock_redis
    app["settings_service"] = settings_service
    app["purchase_service"] = PurchaseService(mock_db, settings_service, billing=None)  # type: ignore[arg-type]
    app["history_service"] = PurchaseHistoryService(mock_db)  # type: ignore[arg-type]

    setup_routes(app)
    return app


def user_headers(user_id: int = USER_ID, role: str = "client") -> dict[str, str]:
    """Gateway headers for an authenticated user."""
    return {"X-Internal-Token": INTERNAL_TOKEN, "X-User-Id": str(user_id), "X-User-Role": role}


def admin_headers() -> dict[str, str]:
    return user_headers(user_id=1, role="admin")


def store_settings_rows(**values: str) -> list[dict[str, str]]:
    """store_settings table rows from keyword values."""
    return [{"key": key, "value": value} for key, value in values.items()]


@pytest.fixture
async def api_client(
    mock_db: MockSupabaseClient,
    mock_redis: MockRedisClient,
    mock_settings: MagicMock,
) -> Any:
    """aiohttp TestClient with real handlers and mock dependencies.

    Usage:
        async def test_health(api_client):
            resp = await api_client.get("/api/health")
            assert resp.status == 200
    """
    app = _create_test_app(mock_db, mock_redis, mock_settings)
    server = TestServer(app)
    client = TestClient(server)
    await client.start_server()
    yield client
    await client.close()
