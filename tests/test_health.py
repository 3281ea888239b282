"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_without_redis(client: AsyncClient) -> None:
    """Database is reachable. Redis was never initialized, and pub/sub is enabled by default."""
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"] == "not initialized"
    assert data["checks"]["badge_catalogue"] == 0


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert "version" in data
    assert "environment" in data


@pytest.mark.asyncio
async def test_readiness_ignores_redis_when_pubsub_disabled(client: AsyncClient, monkeypatch) -> None:
    from skillbank.config import get_settings

    monkeypatch.setenv("SKB_NOTIFICATION_PUBSUB_ENABLED", "false")
    get_settings.cache_clear()
    try:
        response = await client.get("/ready")
    finally:
        get_settings.cache_clear()

    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["redis"] == "not initialized"
