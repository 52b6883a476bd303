"""
Main Application Unit Tests

Tests for application startup and health endpoints with mocked infrastructure.
Runs without Docker - uses mocks for database and Redis connections.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from bra3n.main import app


def test_health_check():
    """
    Verify /health endpoint returns correct response structure.

    TestClient triggers the lifespan handler, so DB/cache checks must be mocked.
    """
    with (
        patch("bra3n.main.wait_for_db", new_callable=AsyncMock) as mock_db,
        patch("bra3n.main.check_cache", new_callable=AsyncMock) as mock_cache,
        patch("bra3n.main.dispose_engine", new_callable=AsyncMock),
    ):
        mock_db.return_value = True
        mock_cache.return_value = True

        with TestClient(app) as client:
            response = client.get("/health")

            assert response.status_code == 200
            data = response.json()

            assert data["status"] == "ok"
            assert data["service"] == "bra3n-search"
            assert "environment" in data


def test_startup_fails_without_database():
    with (
        patch("bra3n.main.wait_for_db", new_callable=AsyncMock) as mock_db,
        patch("bra3n.main.dispose_engine", new_callable=AsyncMock),
    ):
        mock_db.return_value = False

        with pytest.raises(RuntimeError, match="Database connection failed"):
            with TestClient(app):
                pass
