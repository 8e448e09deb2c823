"""API health tests against the fully configured application."""

import pytest
from httpx import ASGITransport, AsyncClient

from frontdesk.core.dependencies import reset_state
from frontdesk.main import create_app


@pytest.fixture(autouse=True)
def fresh_state():
    """Rebuild the process-wide store and idempotency cache for every test."""
    reset_state()
    yield
    reset_state()


@pytest.mark.asyncio
async def test_api_health_endpoints():
    """Test the health endpoints of the real app with the demo property."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"

        response = await client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["inventory"] == "ok"

        response = await client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "frontdesk-api"
        assert data["pricing"]["booking_tax_rate"] == 0.10


@pytest.mark.asyncio
async def test_metrics_endpoint():
    """Test the metrics endpoint."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "reservations_active" in response.text


@pytest.mark.asyncio
async def test_request_id_echoed():
    """The request ID header is generated or echoed back."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_openapi_docs():
    """Test that OpenAPI docs are available in development."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/docs")
        assert response.status_code == 200
