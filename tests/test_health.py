from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_health_endpoint_returns_expected_shape() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "service" in data
    assert "timestamp" in data
    assert data["uptime_seconds"] >= 0


def test_root_endpoint_lists_available_endpoints() -> None:
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["version"]
    paths = {(endpoint["method"], endpoint["path"]) for endpoint in data["available_endpoints"]}
    assert ("POST", "/fathom") in paths
    assert ("GET", "/health") in paths
