"""Integration tests for GET /api/health."""

from __future__ import annotations

import pytest

from tests.integration.conftest import HEALTH_TOKEN, MockSupabaseClient

pytestmark = pytest.mark.integration


async def test_public_health(api_client):
    resp = await api_client.get("/api/health")
    assert resp.status == 200
    assert await resp.json() == {"status": "ok"}
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Request-Id"]


async def test_detailed_health(api_client, mock_db: MockSupabaseClient):
    resp = await api_client.get("/api/health", headers={"Authorization": f"Bearer {HEALTH_TOKEN}"})
    body = await resp.json()

    assert resp.status == 200
    assert body["status"] == "ok"
    assert body["checks"]["database"]["status"] == "ok"
    assert body["checks"]["redis"]["status"] == "ok"
    assert mock_db.called("store_settings", "limit") == [((1,), {})]


async def test_health_needs_no_gateway_headers(api_client):
    resp = await api_client.get("/api/health", headers={"Authorization": "Bearer wrong"})
    assert resp.status == 200
    assert "checks" not in await resp.json()
