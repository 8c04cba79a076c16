"""
Tests for health check endpoints.
"""
from fastapi.testclient import TestClient


def test_root_endpoint(client: TestClient):
    """Test the root endpoint returns API info."""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "MapNav API"
    assert "version" in data
    assert data["status"] == "running"


def test_health_check(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


def test_liveness_probe(client: TestClient):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


async def test_readiness_probe(async_client):
    """Readiness always answers 200 and reports the database check."""
    response = await async_client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] in ("ready", "not_ready")
    assert "database" in data["checks"]


def test_unknown_route_is_404(client: TestClient):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404


def test_data_endpoints_need_database(client: TestClient):
    """Without a successful init_db() data endpoints answer 503 in the envelope."""
    response = client.get("/api/locations")

    assert response.status_code == 503
    assert response.json() == {"success": False, "error": "Database unavailable"}
