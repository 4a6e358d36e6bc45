import pytest
from httpx import ASGITransport, AsyncClient


@pytest.mark.asyncio
async def test_root_health_reports_version(app_with_db) -> None:
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_readyz_reports_component_statuses(app_with_db) -> None:
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        health = await client.get("/api/v1/healthz")
        response = await client.get("/api/v1/readyz")

    assert health.json() == {"status": "ok"}
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["components"]["database"]["status"] == "ready"
    assert payload["components"]["rate_limiter"]["status"] == "ready"


@pytest.mark.asyncio
async def test_readyz_degrades_when_rate_limiting_disabled(app_with_db, monkeypatch) -> None:
    from snapbag_api.core.settings import settings

    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/readyz")

    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["components"]["rate_limiter"]["status"] == "disabled"
