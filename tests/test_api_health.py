"""Tests for health check endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from cardscan.main import app
from cardscan.services.catalog_index import CatalogIndex, get_catalog_index


@pytest.fixture
def index() -> CatalogIndex:
    client = MagicMock()
    client.list_sets = AsyncMock(return_value=[{"id": "sv8", "printedTotal": 191}])
    return CatalogIndex(client=client, seed={"102": "base1"})


@pytest.fixture
async def client(index: CatalogIndex):
    """Provide an async test client with an isolated catalog index."""
    app.dependency_overrides[get_catalog_index] = lambda: index

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness probe returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestReadyEndpoint:
    async def test_ready_on_seed_table(self, client: AsyncClient) -> None:
        """Service is ready before any catalog refresh."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["indexed_sets"] == 1
        assert data["seed_only"] is True
        assert data["last_refreshed"] is None

    async def test_ready_after_refresh(self, client: AsyncClient, index: CatalogIndex) -> None:
        """Readiness reports the refreshed index."""
        await index.refresh()

        response = await client.get("/ready")

        data = response.json()
        assert data["indexed_sets"] == 2
        assert data["seed_only"] is False
        assert data["last_refreshed"] is not None
