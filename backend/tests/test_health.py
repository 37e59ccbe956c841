"""Tests for the /health endpoint."""
from datetime import datetime

from fastapi.testclient import TestClient

from mp3_converter.converter import get_converter
from mp3_converter.main import app

from conftest import FakeConverter


def test_health_reports_healthy(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["ffmpeg"] == "available"
    assert data["timestamp"].endswith("Z")
    datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))


def test_health_reports_unhealthy_when_ffmpeg_missing(api_client, fake_converter):
    fake_converter.available = False
    response = api_client.get("/health")
    assert response.status_code == 500
    assert response.json() == {
        "status": "unhealthy",
        "error": "ffmpeg no está instalado o configurado correctamente",
        "message": "ffmpeg: command not found",
    }


def test_health_does_not_touch_working_directory(api_client, work_dir):
    api_client.get("/health")
    assert not work_dir.exists()


def test_unknown_route_is_404(api_client):
    assert api_client.get("/nope").status_code == 404


class _ExplodingConverter(FakeConverter):
    async def check_available(self):
        raise RuntimeError("kaboom")


def test_unexpected_error_maps_to_500(api_client):
    app.dependency_overrides[get_converter] = lambda: _ExplodingConverter()
    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/health")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "kaboom"}
