"""
Tests for infrastructure endpoints.
"""

from unittest import mock


class TestHealthCheck:
    """GET /health/"""

    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_database_down_returns_503(self, client, db):
        with mock.patch("core.views.connection") as connection:
            connection.cursor.side_effect = Exception("down")
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
