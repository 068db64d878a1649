"""
API endpoint tests.

Tests all REST endpoints for:
- Correct responses
- Error handling
- Recovery log failures staying invisible to callers
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

import sys
from pathlib import Path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from api.main import app
from src.exceptions import PersistenceError


@pytest.fixture
def data_paths(tmp_path, monkeypatch):
    """Point the app at temp storage."""
    db_path = tmp_path / "telemetry.duckdb"
    log_path = tmp_path / "recovery" / "recovery.sql"
    monkeypatch.setenv("DUCKDB_PATH", str(db_path))
    monkeypatch.setenv("RECOVERY_LOG_PATH", str(log_path))
    return db_path, log_path


@pytest.fixture
def client(data_paths):
    """Test client with the real lifespan (DuckDB + recovery log)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bare_client():
    """Test client without lifespan, for patched services."""
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for /api/health endpoint."""

    def test_health_check_returns_ok(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["duckdb"] is True
        assert data["recovery_log"]["healthy"] is True
        assert "timestamp" in data

    def test_health_without_store(self, bare_client):
        with patch("api.main.duckdb_store", None):
            response = bare_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestSosEndpoints:
    """Tests for /api/sos endpoints."""

    def test_post_sos(self, client, data_paths):
        _, log_path = data_paths

        response = client.post("/api/sos", json={"message": "fire", "lat": 12.5, "lng": 77.1})

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "VALUES ('fire', 12.5, 77.1, " in log_path.read_text()

    def test_post_sos_empty_body_uses_default(self, client):
        client.post("/api/sos", json={})

        data = client.get("/api/sos").json()

        assert len(data) == 1
        assert data[0]["message"] == "SOS"
        assert data[0]["lat"] is None

    def test_list_sos_newest_first(self, client):
        for message in ["a", "b", "c"]:
            client.post("/api/sos", json={"message": message})

        data = client.get("/api/sos").json()

        assert sorted(item["message"] for item in data) == ["a", "b", "c"]
        assert set(data[0].keys()) == {"id", "message", "lat", "lng", "created_at"}
        created = [item["created_at"] for item in data]
        assert created == sorted(created, reverse=True)

    def test_list_sos_empty(self, client):
        response = client.get("/api/sos")

        assert response.status_code == 200
        assert response.json() == []

    def test_invalid_coordinates(self, client):
        response = client.post("/api/sos", json={"lat": "north"})

        assert response.status_code == 422

    def test_non_object_body(self, client):
        response = client.post("/api/sos", json=[1, 2, 3])

        assert response.status_code == 422

    def test_lone_surrogate_is_client_error(self, client, data_paths):
        _, log_path = data_paths

        response = client.post(
            "/api/sos",
            content=b'{"message": "x\\ud800"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert client.get("/api/sos").json() == []
        assert not log_path.exists()

    def test_persistence_failure_is_server_error(self, bare_client):
        service = MagicMock()
        service.ingest_sos.side_effect = PersistenceError("store down")

        with patch("api.main.ingestion_service", service):
            response = bare_client.post("/api/sos", json={"message": "fire"})

        assert response.status_code == 500

    def test_list_failure_is_server_error(self, bare_client):
        service = MagicMock()
        service.list_sos.side_effect = PersistenceError("store down")

        with patch("api.main.listing_service", service):
            response = bare_client.get("/api/sos")

        assert response.status_code == 500

    def test_store_not_connected(self, bare_client):
        with patch("api.main.ingestion_service", None):
            response = bare_client.post("/api/sos", json={})

        assert response.status_code == 503


class TestSensorEndpoint:
    """Tests for /api/sensor endpoint."""

    def test_post_sensor(self, client, data_paths):
        _, log_path = data_paths

        response = client.post("/api/sensor", json={"temp": "21.5", "humidity": None})

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

        lines = log_path.read_text().splitlines()
        assert len(lines) == 2
        assert "('temp', '21.5', " in lines[0]
        assert "('humidity', NULL, " in lines[1]

    def test_post_sensor_empty(self, client, data_paths):
        _, log_path = data_paths

        response = client.post("/api/sensor", json={})

        assert response.status_code == 200
        assert not log_path.exists()

    def test_lone_surrogate_in_value_is_client_error(self, client):
        response = client.post(
            "/api/sensor",
            content=b'{"temp": "\\udfff"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    def test_persistence_failure_is_server_error(self, bare_client):
        service = MagicMock()
        service.ingest_sensor.side_effect = PersistenceError("store down")

        with patch("api.main.ingestion_service", service):
            response = bare_client.post("/api/sensor", json={"temp": "1"})

        assert response.status_code == 500


class TestRecoveryLogOutage:
    """Callers never see recovery log failures."""

    def test_writes_succeed_when_log_unwritable(self, tmp_path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setenv("DUCKDB_PATH", str(tmp_path / "telemetry.duckdb"))
        monkeypatch.setenv("RECOVERY_LOG_PATH", str(blocker / "recovery.sql"))

        with TestClient(app) as client:
            sos = client.post("/api/sos", json={"message": "fire"})
            sensor = client.post("/api/sensor", json={"temp": "21.5"})
            listed = client.get("/api/sos").json()
            health = client.get("/api/health").json()

        assert sos.status_code == 200
        assert sensor.status_code == 200
        assert [item["message"] for item in listed] == ["fire"]
        assert health["recovery_log"]["mirror_failures"] == 2
        assert health["recovery_log"]["healthy"] is False
