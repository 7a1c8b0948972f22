"""Data models for registrations, audit records and conflict checks."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from lessonbook.data_store.schema import (
    AUDIT_SCHEMA,
    CLASS_SCHEMA,
    REGISTRATION_SCHEMA,
)
from lessonbook.registrations.times import normalize_time

TRUE_CELLS = ("true", "1", "yes")


class Weekday(StrEnum):
    """School days on which lessons run."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"

    @classmethod
    def parse(cls, value: Weekday | str | int) -> Weekday:
        """Parse a day name (any case) or a 0-based index (0 = Monday).

        Raises:
            ValueError: If the value doesn't name a school day.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"Day index out of range: {value}")
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            for member in cls:
                if member.value.lower() == text.lower():
                    return member
        raise ValueError(f"Invalid day: {value!r}")


class RegistrationType(StrEnum):
    """Kind of lesson a registration is for."""

    PRIVATE = "private"
    GROUP = "group"


class ReenrollmentIntent(StrEnum):
    """Family's stated plan for the next trimester."""

    KEEP = "keep"
    DROP = "drop"
    CHANGE = "change"


class ConflictType(StrEnum):
    """Reason a candidate registration cannot be admitted."""

    DUPLICATE = "duplicate"
    STUDENT_SCHEDULE = "student_schedule"
    INSTRUCTOR_SCHEDULE = "instructor_schedule"
    CLASS_CAPACITY = "class_capacity"


# --- Identifiers ---


@dataclass(frozen=True)
class CompositeId:
    """Deterministic id built from business fields.

    Doubles as the duplicate-detection key.
    """

    parts: tuple[str, ...]

    def __str__(self) -> str:
        return "_".join(self.parts)


@dataclass(frozen=True)
class RandomId:
    """Randomly generated id."""

    value: str

    def __str__(self) -> str:
        return self.value


RegistrationId = CompositeId | RandomId


def parse_registration_id(text: str) -> RegistrationId:
    """Recover the id variant from its stored text."""
    try:
        uuid.UUID(text)
    except ValueError:
        return CompositeId(tuple(text.split("_")))
    return RandomId(text)


def _parse_optional_date(text: str) -> date | None:
    return date.fromisoformat(text[:10]) if text else None


def _parse_optional_datetime(text: str) -> datetime | None:
    return datetime.fromisoformat(text) if text else None


def _parse_schedule(record: dict[str, str]) -> tuple[Weekday | None, str, int | None]:
    """Day, start time and length of a row. Blank cells parse to empty values.

    Raises:
        ValueError: If a non-blank cell can't be parsed or the length isn't positive.
    """
    day = Weekday.parse(record["day"]) if record["day"].strip() else None
    start_time = normalize_time(record["startTime"]) if record["startTime"].strip() else ""
    length = int(record["length"]) if record["length"].strip() else None
    if length is not None and length <= 0:
        raise ValueError(f"Lesson length must be positive, got {length}")
    return day, start_time, length


# --- Entities ---


@dataclass
class Registration:
    """An admitted lesson registration.

    Attributes:
        id: Composite or random identifier.
        day: Lesson day. None for a waitlist class without a schedule.
        start_time: Start of the lesson, 24-hour "HH:MM", or "" when unscheduled.
        length_minutes: Lesson length, positive, or None when unscheduled.
        class_id: Group class id, None for private lessons.
        created_by: Identity of whoever created the registration.
    """

    id: RegistrationId
    student_id: str
    instructor_id: str
    day: Weekday | None
    start_time: str
    length_minutes: int | None
    registration_type: RegistrationType
    room_id: str = ""
    instrument: str = ""
    transportation_type: str = ""
    notes: str = ""
    class_id: str | None = None
    class_title: str | None = None
    expected_start_date: date | None = None
    created_at: datetime | None = None
    created_by: str = ""
    reenrollment_intent: ReenrollmentIntent | None = None
    intent_submitted_at: datetime | None = None
    intent_submitted_by: str | None = None
    linked_previous_registration_id: str | None = None

    @property
    def id_text(self) -> str:
        return str(self.id)

    @property
    def is_scheduled(self) -> bool:
        return self.day is not None and bool(self.start_time) and self.length_minutes is not None

    def to_record(self) -> dict[str, Any]:
        """Column-name mapping in the registration table layout."""
        return {
            "id": self.id_text,
            "studentId": self.student_id,
            "instructorId": self.instructor_id,
            "day": self.day,
            "startTime": self.start_time,
            "length": self.length_minutes,
            "registrationType": self.registration_type,
            "roomId": self.room_id,
            "instrument": self.instrument,
            "transportationType": self.transportation_type,
            "notes": self.notes,
            "classId": self.class_id,
            "classTitle": self.class_title,
            "expectedStartDate": self.expected_start_date,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
            "reenrollmentIntent": self.reenrollment_intent,
            "intentSubmittedAt": self.intent_submitted_at,
            "intentSubmittedBy": self.intent_submitted_by,
            "linkedPreviousRegistrationId": self.linked_previous_registration_id,
        }

    def to_row(self) -> list[str]:
        return REGISTRATION_SCHEMA.encode(self.to_record())

    @classmethod
    def from_record(cls, record: dict[str, str]) -> Registration:
        """Build a registration from decoded cells.

        Raises:
            ValueError: If a cell can't be parsed.
        """
        registration_type = RegistrationType(record["registrationType"].strip().lower())
        day, start_time, length = _parse_schedule(record)
        if registration_type == RegistrationType.PRIVATE and (
            day is None or not start_time or length is None
        ):
            raise ValueError("Private lessons need a day, start time and length")
        intent = record.get("reenrollmentIntent", "")
        return cls(
            id=parse_registration_id(record["id"]),
            student_id=record["studentId"],
            instructor_id=record["instructorId"],
            day=day,
            start_time=start_time,
            length_minutes=length,
            registration_type=registration_type,
            room_id=record["roomId"],
            instrument=record["instrument"],
            transportation_type=record["transportationType"],
            notes=record["notes"],
            class_id=record["classId"] or None,
            class_title=record["classTitle"] or None,
            expected_start_date=_parse_optional_date(record["expectedStartDate"]),
            created_at=_parse_optional_datetime(record["createdAt"]),
            created_by=record["createdBy"],
            reenrollment_intent=ReenrollmentIntent(intent.lower()) if intent else None,
            intent_submitted_at=_parse_optional_datetime(record.get("intentSubmittedAt", "")),
            intent_submitted_by=record.get("intentSubmittedBy") or None,
            linked_previous_registration_id=record.get("linkedPreviousRegistrationId") or None,
        )

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> Registration | None:
        """Decoder for registration table rows. Blank rows decode to None."""
        record = REGISTRATION_SCHEMA.decode(row)
        if not record["id"]:
            return None
        return cls.from_record(record)


REGISTRATION_FIELDS = tuple(f.name for f in fields(Registration))


@dataclass
class AuditRecord:
    """Append-only snapshot of a registration at create or delete time.

    Attributes:
        id: Fresh random id, never the registration id.
        snapshot: Every field of the registration as it was.
        deleted_at: Set only on deletion.
        deleted_by: Set only on deletion.
    """

    id: str
    snapshot: Registration
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @property
    def registration_id(self) -> str:
        return self.snapshot.id_text

    def to_row(self) -> list[str]:
        record = self.snapshot.to_record()
        record["registrationId"] = record.pop("id")
        record.update(
            id=self.id,
            isDeleted=self.is_deleted,
            deletedAt=self.deleted_at,
            deletedBy=self.deleted_by,
        )
        return AUDIT_SCHEMA.encode(record)

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> AuditRecord | None:
        """Decoder for audit table rows."""
        record = AUDIT_SCHEMA.decode(row)
        if not record["id"]:
            return None
        audit_id = record.pop("id")
        is_deleted = record.pop("isDeleted").strip().lower() in TRUE_CELLS
        deleted_at = _parse_optional_datetime(record.pop("deletedAt"))
        deleted_by = record.pop("deletedBy") or None
        record["id"] = record.pop("registrationId")
        return cls(
            id=audit_id,
            snapshot=Registration.from_record(record),
            is_deleted=is_deleted,
            deleted_at=deleted_at,
            deleted_by=deleted_by,
        )


@dataclass
class GroupClass:
    """Catalog entry for a group class. Authoritative for capacity.

    Waitlist classes may leave day, start_time and length_minutes blank.
    """

    id: str
    instructor_id: str
    day: Weekday | None
    start_time: str
    length_minutes: int | None
    instrument: str = ""
    title: str = ""
    size: int | None = None
    min_grade: int | None = None
    max_grade: int | None = None

    def to_row(self) -> list[str]:
        return CLASS_SCHEMA.encode(
            {
                "id": self.id,
                "instructorId": self.instructor_id,
                "day": self.day,
                "startTime": self.start_time,
                "length": self.length_minutes,
                "instrument": self.instrument,
                "title": self.title,
                "size": self.size,
                "minimumGrade": self.min_grade,
                "maximumGrade": self.max_grade,
            }
        )

    @property
    def is_scheduled(self) -> bool:
        return self.day is not None and bool(self.start_time) and self.length_minutes is not None

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> GroupClass | None:
        record = CLASS_SCHEMA.decode(row)
        if not record["id"]:
            return None
        day, start_time, length = _parse_schedule(record)
        return cls(
            id=record["id"],
            instructor_id=record["instructorId"],
            day=day,
            start_time=start_time,
            length_minutes=length,
            instrument=record["instrument"],
            title=record["title"],
            size=int(record["size"]) if record["size"] else None,
            min_grade=int(record["minimumGrade"]) if record["minimumGrade"] else None,
            max_grade=int(record["maximumGrade"]) if record["maximumGrade"] else None,
        )


# --- Conflict checking ---


@dataclass
class Conflict:
    """One reason a candidate can't be admitted.

    Attributes:
        type: Kind of conflict.
        message: Human-readable explanation.
        existing_registration_id: The registration the candidate collides with.
        current_count: Registrations already in the class (capacity only).
        max_capacity: Class size used for the comparison (capacity only).
    """

    type: ConflictType
    message: str
    existing_registration_id: str | None = None
    current_count: int | None = None
    max_capacity: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "existing_registration_id": self.existing_registration_id,
            "current_count": self.current_count,
            "max_capacity": self.max_capacity,
        }


@dataclass
class ConflictCheckOptions:
    """Inputs to a conflict check beyond the registrations themselves.

    Attributes:
        group_class: Resolved class for group candidates.
        skip_capacity_check: Only set for privileged callers.
        default_capacity: Class size assumed when the class has none.
    """

    group_class: GroupClass | None = None
    skip_capacity_check: bool = False
    default_capacity: int = 12


@dataclass
class ConflictCheckResult:
    """Outcome of a conflict check."""

    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


# --- Requests ---


@dataclass
class RegistrationRequest:
    """Caller-supplied data for a new registration.

    For group requests only student_id and class_id are required; the
    schedule fields are copied from the class.
    """

    registration_type: RegistrationType | str
    student_id: str | None = None
    instructor_id: str | None = None
    day: Weekday | str | int | None = None
    start_time: str | None = None
    length_minutes: int | str | None = None
    class_id: str | None = None
    room_id: str | None = None
    instrument: str | None = None
    transportation_type: str | None = None
    notes: str = ""
    expected_start_date: date | None = None
    linked_previous_registration_id: str | None = None


@dataclass
class BatchFailure:
    """One rejected item of a batch create.

    Attributes:
        index: Position of the request in the batch.
        error: Error message.
        conflicts: Conflicts, when the item was rejected by conflict detection.
    """

    index: int
    request: RegistrationRequest
    error: str
    conflicts: list[Conflict] = field(default_factory=list)


@dataclass
class BatchResult:
    """Outcome of a batch create."""

    created: list[Registration] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

