"""Tests for health endpoints."""

from fastapi.testclient import TestClient

from beamauth_api.main import app

client = TestClient(app)


def test_health_check():
    """Test health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "beamauth-api"


def test_readiness_check_reports_missing_migrations():
    """Readiness fails until the schema is migrated to head."""
    response = client.get("/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"]["database"] is True
    assert data["checks"]["migrations"] is False


def test_root():
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Beam Authorization API"


def test_metrics_exposed():
    response = client.get("/metrics/")
    assert response.status_code == 200
    assert "beamauth_expiration_checks" in response.text
