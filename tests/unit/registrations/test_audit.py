"""Unit tests for AuditTrail."""

from datetime import UTC, datetime

import pytest
import pytest_asyncio

from lessonbook.cache import TableCache, TableReader
from lessonbook.data_store import AUDIT_TABLE, SqlDataStore, ensure_tables
from lessonbook.registrations import (
    AuditRecord,
    AuditTrail,
    CompositeId,
    Registration,
    RegistrationType,
    Weekday,
)


@pytest.fixture
def registration() -> Registration:
    return Registration(
        id=CompositeId(("S1", "I1", "Monday", "15:00")),
        student_id="S1",
        instructor_id="I1",
        day=Weekday.MONDAY,
        start_time="15:00",
        length_minutes=30,
        registration_type=RegistrationType.PRIVATE,
        room_id="R-101",
        created_at=datetime(2026, 10, 1, 8, 0, tzinfo=UTC),
        created_by="office@school.example",
    )


@pytest_asyncio.fixture
async def audit(store: SqlDataStore, clock, ids) -> AuditTrail:
    """AuditTrail over an empty store with every table created."""
    await ensure_tables(store)
    return AuditTrail(store, TableReader(store, TableCache()), clock, ids)


@pytest.mark.unit
class TestRecordCreated:
    """Tests for AuditTrail.record_created."""

    @pytest.mark.asyncio
    async def test_appends_snapshot(
        self, audit: AuditTrail, store: SqlDataStore, registration: Registration
    ) -> None:
        """A creation record holds the snapshot and is stored."""
        record = await audit.record_created(registration, "office@school.example")

        assert record.id == "audit-0001"
        assert not record.is_deleted
        assert record.deleted_at is None
        rows = await store.list_all(AUDIT_TABLE, AuditRecord.from_row)
        assert rows == [record]

    @pytest.mark.asyncio
    async def test_fresh_id_per_record(
        self, audit: AuditTrail, registration: Registration
    ) -> None:
        """Each record gets its own id."""
        first = await audit.record_created(registration, "a")
        second = await audit.record_created(registration, "a")

        assert first.id != second.id


@pytest.mark.unit
class TestRecordDeleted:
    """Tests for AuditTrail.record_deleted."""

    @pytest.mark.asyncio
    async def test_marks_deletion(
        self, audit: AuditTrail, clock, registration: Registration
    ) -> None:
        """A deletion record carries when and by whom."""
        record = await audit.record_deleted(registration, "parent@example.com")

        assert record.is_deleted
        assert record.deleted_at == clock.now()
        assert record.deleted_by == "parent@example.com"
        assert record.snapshot == registration


@pytest.mark.unit
class TestHistory:
    """Tests for AuditTrail.history."""

    @pytest.mark.asyncio
    async def test_oldest_first_for_one_registration(
        self, audit: AuditTrail, registration: Registration
    ) -> None:
        """History holds only that registration, oldest first."""
        other = Registration(
            id=CompositeId(("S2", "G1")),
            student_id="S2",
            instructor_id="I3",
            day=Weekday.TUESDAY,
            start_time="16:00",
            length_minutes=45,
            registration_type=RegistrationType.GROUP,
            class_id="G1",
        )
        await audit.record_created(registration, "a")
        await audit.record_created(other, "a")
        await audit.record_deleted(registration, "b")

        history = await audit.history("S1_I1_Monday_15:00")

        assert [r.is_deleted for r in history] == [False, True]
        assert all(r.registration_id == "S1_I1_Monday_15:00" for r in history)

    @pytest.mark.asyncio
    async def test_unknown_registration(self, audit: AuditTrail) -> None:
        """An id with no records has an empty history."""
        assert await audit.history("S9_G9") == []
