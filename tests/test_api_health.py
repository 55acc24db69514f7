"""Tests for the health check."""

from app.db.directory import MemoryDirectory


def test_health_reports_services(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["environment"] == "development"
    assert body["services"] == {
        "database": "healthy",
        "database_backend": "memory",
        "openai": "not configured",
        "grok": "not configured",
        "twilio": "not configured",
    }


def test_health_is_503_when_database_is_down(client):
    class DownDirectory(MemoryDirectory):
        async def ping(self) -> bool:
            return False

    client.app.state.directory = DownDirectory()

    resp = client.get("/health")

    assert resp.status_code == 503
    assert resp.json()["services"]["database"] == "unhealthy"
