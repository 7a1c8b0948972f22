"""Integration tests for the registration API over a SQLite file."""

import asyncio
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lessonbook.api.app import create_app
from lessonbook.config import Settings
from lessonbook.data_store import SqlDataStore
from lessonbook.trimesters import Period, PeriodType, Trimester

STAFF = {"X-User-Id": "office@school.example"}
PIANO_ID = "S1_I1_Monday_15:00"
PIANO_LESSON = {
    "registration_type": "private",
    "student_id": "S1",
    "instructor_id": "I1",
    "day": "Monday",
    "start_time": "3:00 PM",
    "length_minutes": 30,
    "instrument": "Piano",
}


@pytest.fixture
def temp_db_path() -> str:
    """Create a temporary database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        return f.name


@pytest.fixture
def seeded_db(temp_db_path: str, seed):
    """Database file holding the catalog and a fall calendar around today."""
    now = datetime.now(UTC)
    periods = [
        Period("P1", Trimester.FALL, PeriodType.REGISTRATION, now - timedelta(days=30)),
        Period("P2", Trimester.FALL, PeriodType.PRIORITY_ENROLLMENT, now + timedelta(days=30)),
    ]
    store = SqlDataStore(temp_db_path)
    try:
        asyncio.run(seed(store, periods))
    finally:
        store.close()
    yield temp_db_path
    # Cleanup
    Path(temp_db_path).unlink(missing_ok=True)
    Path(f"{temp_db_path}-wal").unlink(missing_ok=True)
    Path(f"{temp_db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def client(seeded_db: str):
    """Create a test client over the seeded database."""
    app = create_app(Settings(db_path=seeded_db))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.mark.integration
class TestRegistrationLifecycleFlow:
    """Integration test for the full registration lifecycle."""

    def test_create_reject_cancel_flow(self, client: TestClient) -> None:
        """Create -> Reject duplicate -> Cancel -> History."""
        # 1. Create
        create_response = client.post("/api/v1/registrations", json=PIANO_LESSON, headers=STAFF)
        assert create_response.status_code == 201
        assert create_response.json()["data"]["id"] == PIANO_ID

        # 2. Duplicate is rejected
        duplicate_response = client.post(
            "/api/v1/registrations", json=PIANO_LESSON, headers=STAFF
        )
        assert duplicate_response.status_code == 409
        assert duplicate_response.json()["data"][0]["type"] == "duplicate"

        # 3. Overlapping lesson with another instructor is rejected
        overlap_response = client.post(
            "/api/v1/registrations",
            json={**PIANO_LESSON, "instructor_id": "I2", "start_time": "15:15"},
            headers=STAFF,
        )
        assert overlap_response.status_code == 409
        assert [c["type"] for c in overlap_response.json()["data"]] == ["student_schedule"]

        # 4. Cancel
        delete_response = client.delete(
            f"/api/v1/registrations/{PIANO_ID}",
            headers={"X-User-Id": "parent@example.com"},
        )
        assert delete_response.status_code == 204
        assert client.get(f"/api/v1/registrations/{PIANO_ID}").status_code == 404

        # 5. History holds one creation and one deletion
        history = client.get(f"/api/v1/registrations/{PIANO_ID}/history").json()["data"]
        assert [r["is_deleted"] for r in history] == [False, True]
        assert history[1]["deleted_by"] == "parent@example.com"

        # 6. The slot is free again
        again = client.post("/api/v1/registrations", json=PIANO_LESSON, headers=STAFF)
        assert again.status_code == 201

    def test_trimester_status(self, client: TestClient) -> None:
        """Test trimester status from the live app."""
        response = client.get("/api/v1/trimesters")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_table"] == "registrations_fall"
        assert data["next_period"]["period_type"] == "priorityEnrollment"

    def test_registrations_survive_restart(self, seeded_db: str) -> None:
        """Data written by one app instance is read by the next."""
        with TestClient(create_app(Settings(db_path=seeded_db))) as first:
            assert (
                first.post("/api/v1/registrations", json=PIANO_LESSON, headers=STAFF).status_code
                == 201
            )

        with TestClient(create_app(Settings(db_path=seeded_db))) as second:
            response = second.get("/api/v1/registrations")

        assert [r["id"] for r in response.json()["data"]] == [PIANO_ID]
