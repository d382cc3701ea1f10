"""
API tests for health checks and the global error envelope.
"""

from med1.api import health


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_ready_reports_components(self, client):
        body = client.get("/health/ready").json()

        assert body["status"] == "ready"
        assert body["components"]["database"]["connected"] is True
        assert "redis" in body["components"]

    def test_ready_fails_without_database(self, client, monkeypatch):
        monkeypatch.setattr(health, "check_db_connection", lambda: False)

        body = client.get("/health/ready").json()

        assert body["status"] == "not_ready"
        assert body["components"]["database"] == {"status": "unhealthy", "connected": False}

    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "alive"


class TestErrorEnvelope:
    def test_malformed_uuid_is_400(self, client, auth_headers):
        response = client.get("/api/leads/not-a-uuid", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
