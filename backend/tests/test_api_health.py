"""Integration tests for /health, /health/ready and /metrics."""

import pytest
from httpx import AsyncClient

from scrapegate.config import settings


class TestLivenessEndpoint:
    @pytest.mark.asyncio
    async def test_liveness_returns_healthy(self, client: AsyncClient):
        """GET /health returns 200 with status healthy."""
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestReadinessEndpoint:
    @pytest.mark.asyncio
    async def test_readiness_reports_runtime(self, client: AsyncClient, resolver):
        resp = await client.get("/health/ready")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["checks"]["executable_path"] == "bundled"
        assert data["max_sessions"] == 4
        assert data["cached_responses"] == 0

    @pytest.mark.asyncio
    async def test_readiness_returns_503_when_resolution_fails(self, client: AsyncClient, resolver):
        resolver.resolve.side_effect = OSError("cache dir unreadable")

        resp = await client.get("/health/ready")

        assert resp.status_code == 503
        assert resp.json()["status"] == "not ready"


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client: AsyncClient):
        await client.post("/scrape", json={})
        resp = await client.get("/metrics")

        assert resp.status_code == 200
        assert "scrape_requests_total" in resp.text

    @pytest.mark.asyncio
    async def test_metrics_disabled(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "METRICS_ENABLED", False)
        resp = await client.get("/metrics")
        assert resp.status_code == 404


class TestRoot:
    @pytest.mark.asyncio
    async def test_root_banner(self, client: AsyncClient):
        resp = await client.get("/")
        assert resp.json()["app"] == settings.APP_NAME
