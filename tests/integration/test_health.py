# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the health endpoint."""

from unittest.mock import AsyncMock, patch

from src import __version__
from src.api.routes.health import ComponentHealth


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client) -> None:
        with patch(
            "src.api.routes.health.check_database",
            AsyncMock(return_value=ComponentHealth(status="healthy", latency_ms=1.2)),
        ):
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["components"]["database"]["latency_ms"] == 1.2

    def test_database_down(self, client) -> None:
        """Test that an unreachable database is reported without failing the request."""
        with patch(
            "src.api.routes.health.check_database",
            AsyncMock(return_value=ComponentHealth(status="unhealthy", message="refused")),
        ):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"

    def test_no_pool_reports_unhealthy(self, client) -> None:
        """Test that the check itself turns a missing engine into an unhealthy component."""
        response = client.get("/health")

        assert response.json()["components"]["database"]["status"] == "unhealthy"
