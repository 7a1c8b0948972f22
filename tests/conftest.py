"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from lessonbook.api.dependencies import Services, build_services
from lessonbook.config import Settings
from lessonbook.data_store import (
    CLASSES_TABLE,
    INSTRUCTORS_TABLE,
    PERIODS_TABLE,
    STUDENTS_TABLE,
    DataStore,
    SqlDataStore,
    ensure_tables,
)
from lessonbook.directory import Instructor, Student
from lessonbook.registrations import GroupClass, RegistrationRequest, Weekday
from lessonbook.trimesters import Period, PeriodType, Trimester

TODAY = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


class FixedClock:
    """Clock frozen at a settable instant."""

    def __init__(self, now: datetime = TODAY) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class SequentialIds:
    """Predictable ids: audit-0001, audit-0002, ..."""

    def __init__(self, prefix: str = "audit") -> None:
        self.prefix = prefix
        self.count = 0

    def new_id(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count:04d}"


STUDENTS = [
    Student(id=f"S{n}", first_name=f"Student{n}", last_name="Test", grade=5) for n in range(1, 16)
]

INSTRUCTORS = [
    Instructor(
        id="I1",
        first_name="Ada",
        last_name="Keys",
        email="ada@school.example",
        rooms={Weekday.MONDAY: "R-101", Weekday.WEDNESDAY: "R-103"},
    ),
    Instructor(id="I2", first_name="Ben", last_name="Strings", email="ben@school.example"),
    Instructor(
        id="I3",
        first_name="Cy",
        last_name="Brass",
        email="cy@school.example",
        rooms={Weekday.TUESDAY: "R-202"},
    ),
]

CLASSES = [
    GroupClass(
        id="G1",
        instructor_id="I3",
        day=Weekday.TUESDAY,
        start_time="16:00",
        length_minutes=45,
        instrument="Trumpet",
        title="Beginning Brass",
        size=12,
        min_grade=3,
        max_grade=6,
    ),
    GroupClass(
        id="G2",
        instructor_id="I2",
        day=Weekday.THURSDAY,
        start_time="15:30",
        length_minutes=60,
        instrument="Violin",
        title="String Ensemble",
    ),
]

# Fall registration is underway on TODAY; fall priority enrollment opens in November.
PERIODS = [
    Period("P1", Trimester.FALL, PeriodType.INTENT, datetime(2026, 8, 1, tzinfo=UTC)),
    Period("P2", Trimester.FALL, PeriodType.REGISTRATION, datetime(2026, 9, 1, tzinfo=UTC)),
    Period(
        "P3", Trimester.FALL, PeriodType.PRIORITY_ENROLLMENT, datetime(2026, 11, 15, tzinfo=UTC)
    ),
    Period("P4", Trimester.FALL, PeriodType.OPEN_ENROLLMENT, datetime(2026, 11, 22, tzinfo=UTC)),
    Period("P5", Trimester.WINTER, PeriodType.REGISTRATION, datetime(2027, 1, 4, tzinfo=UTC)),
]


async def seed_catalog(store: DataStore, periods: list[Period] = PERIODS) -> None:
    """Create every table and fill the catalog and calendar tables."""
    await ensure_tables(store)
    for student in STUDENTS:
        await store.append(STUDENTS_TABLE, student.to_row())
    for instructor in INSTRUCTORS:
        await store.append(INSTRUCTORS_TABLE, instructor.to_row())
    for group_class in CLASSES:
        await store.append(CLASSES_TABLE, group_class.to_row())
    for period in periods:
        await store.append(PERIODS_TABLE, period.to_row())


def _private_request(
    student_id: str = "S1",
    instructor_id: str = "I1",
    day: str = "Monday",
    start_time: str = "15:00",
    length_minutes: int = 30,
    instrument: str = "Piano",
    transportation_type: str | None = None,
    room_id: str | None = None,
) -> RegistrationRequest:
    return RegistrationRequest(
        registration_type="private",
        student_id=student_id,
        instructor_id=instructor_id,
        day=day,
        start_time=start_time,
        length_minutes=length_minutes,
        instrument=instrument,
        transportation_type=transportation_type,
        room_id=room_id,
    )


def _group_request(
    student_id: str, class_id: str = "G1", transportation_type: str | None = None
) -> RegistrationRequest:
    return RegistrationRequest(
        registration_type="group",
        student_id=student_id,
        class_id=class_id,
        transportation_type=transportation_type,
    )


# Shared fixtures


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen on a day inside the fall registration period."""
    return FixedClock()


@pytest.fixture
def ids() -> SequentialIds:
    """Predictable id generator."""
    return SequentialIds()


@pytest.fixture
def settings() -> Settings:
    """Default settings against an in-memory database."""
    return Settings(db_path=":memory:")


@pytest.fixture
def store():
    """Create an in-memory SqlDataStore."""
    s = SqlDataStore(":memory:")
    yield s
    s.close()


@pytest_asyncio.fixture
async def seeded_store(store: SqlDataStore) -> SqlDataStore:
    """In-memory store with tables, catalog and calendar in place."""
    await seed_catalog(store)
    return store


@pytest_asyncio.fixture
async def services(
    seeded_store: SqlDataStore, settings: Settings, clock: FixedClock, ids: SequentialIds
) -> Services:
    """Fully wired registration core over the seeded store."""
    return build_services(settings, store=seeded_store, clock=clock, id_generator=ids)


@pytest.fixture
def private_request():
    """Factory for private lesson requests, S1 with I1 on Monday at 15:00 by default."""
    return _private_request


@pytest.fixture
def group_request():
    """Factory for group class requests."""
    return _group_request


@pytest.fixture
def seed():
    """Coroutine function that seeds a store with the test catalog."""
    return seed_catalog
