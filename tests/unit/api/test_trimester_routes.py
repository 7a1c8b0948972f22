"""Unit tests for trimester routes."""

from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lessonbook.api.app import register_exception_handlers
from lessonbook.api.dependencies import Services, get_services
from lessonbook.api.routes import trimesters


@pytest.fixture
def app(services: Services):
    """Create a test FastAPI app over the seeded services."""
    app = FastAPI()

    def override_get_services():
        yield services

    app.dependency_overrides[get_services] = override_get_services
    register_exception_handlers(app)
    app.include_router(trimesters.router, prefix="/api/v1")
    return app


@pytest.fixture
def client(app: FastAPI):
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.mark.unit
class TestTrimesterStatus:
    """Tests for GET /trimesters."""

    def test_registration_period(self, client: TestClient) -> None:
        """Test trimester status during registration."""
        response = client.get("/api/v1/trimesters")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_table"] == "registrations_fall"
        assert data["enrollment_table"] == "registrations_fall"
        assert data["current_period"]["period_type"] == "registration"
        assert data["next_period"]["period_type"] == "priorityEnrollment"
        assert data["intent_period_active"] is False

    def test_enrollment_window(self, client: TestClient, clock) -> None:
        """Test the enrollment table moves ahead during enrollment."""
        clock.current = datetime(2026, 11, 16, tzinfo=UTC)

        data = client.get("/api/v1/trimesters").json()["data"]

        assert data["current_table"] == "registrations_fall"
        assert data["enrollment_table"] == "registrations_winter"

    def test_no_active_period(self, client: TestClient, clock) -> None:
        """503 before the calendar starts."""
        clock.current = datetime(2026, 1, 1, tzinfo=UTC)

        response = client.get("/api/v1/trimesters")

        assert response.status_code == 503
        assert response.json()["error"] == "No active trimester period"
