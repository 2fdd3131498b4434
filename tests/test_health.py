"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient

from clinic_portal.config import settings


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test basic health check endpoint."""
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == settings.app_version


@pytest.mark.asyncio
async def test_ping(client: AsyncClient):
    """Test ping endpoint."""
    response = await client.get("/api/v1/ping")

    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    """Test the root endpoint points at the docs."""
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["version"] == settings.app_version


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    """Test every response carries a request id."""
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_detailed_health_degrades_without_redis(client: AsyncClient, monkeypatch):
    """Test a Redis outage marks the service degraded, not down."""

    async def redis_down() -> bool:
        return False

    monkeypatch.setattr(
        "clinic_portal.api.v1.endpoints.health.check_redis_connection", redis_down
    )

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["redis"] == "unhealthy"
    assert data["status"] in ("degraded", "unhealthy")
    assert data["clinic_timezone"] == settings.clinic_timezone
