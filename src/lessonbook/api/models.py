"""Pydantic models for REST API."""

from datetime import date, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from lessonbook.registrations import (
    AuditRecord,
    BatchResult,
    Conflict,
    Registration,
    RegistrationRequest,
)
from lessonbook.trimesters import Period

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Registration models


class RegistrationCreate(BaseModel):
    """Request model for creating a registration.

    Group registrations only need student_id and class_id.
    """

    registration_type: Literal["private", "group"]
    student_id: str = Field(..., min_length=1, max_length=255)
    instructor_id: str | None = Field(default=None, max_length=255)
    day: str | int | None = None
    start_time: str | None = Field(default=None, max_length=20)
    length_minutes: int | None = Field(default=None, ge=1, le=240)
    class_id: str | None = Field(default=None, max_length=255)
    room_id: str | None = Field(default=None, max_length=255)
    instrument: str | None = Field(default=None, max_length=255)
    transportation_type: str | None = Field(default=None, max_length=50)
    notes: str = Field(default="", max_length=2000)
    expected_start_date: date | None = None
    linked_previous_registration_id: str | None = None

    def to_request(self) -> RegistrationRequest:
        return RegistrationRequest(**self.model_dump())


class RegistrationBatchCreate(BaseModel):
    """Request model for creating several registrations."""

    registrations: list[RegistrationCreate] = Field(..., min_length=1, max_length=500)


class RegistrationUpdate(BaseModel):
    """Request model for updating a registration (partial update).

    Extra fields are passed through so that attempts to change protected
    fields are reported as validation errors.
    """

    model_config = ConfigDict(extra="allow")

    notes: str | None = None
    transportation_type: str | None = None
    instrument: str | None = None
    room_id: str | None = None
    expected_start_date: date | None = None


class IntentUpdate(BaseModel):
    """Request model for recording re-enrollment intent."""

    intent: Literal["keep", "drop", "change"]


class RegistrationResponse(BaseModel):
    """Response model for a registration."""

    id: str
    student_id: str
    instructor_id: str
    day: str | None
    start_time: str
    length_minutes: int | None
    registration_type: str
    room_id: str
    instrument: str
    transportation_type: str
    notes: str
    class_id: str | None
    class_title: str | None
    expected_start_date: date | None
    created_at: datetime | None
    created_by: str
    reenrollment_intent: str | None
    intent_submitted_at: datetime | None
    intent_submitted_by: str | None
    linked_previous_registration_id: str | None


def registration_to_response(registration: Registration) -> RegistrationResponse:
    """Convert a Registration to RegistrationResponse."""
    return RegistrationResponse(
        id=registration.id_text,
        student_id=registration.student_id,
        instructor_id=registration.instructor_id,
        day=registration.day.value if registration.day else None,
        start_time=registration.start_time,
        length_minutes=registration.length_minutes,
        registration_type=registration.registration_type.value,
        room_id=registration.room_id,
        instrument=registration.instrument,
        transportation_type=registration.transportation_type,
        notes=registration.notes,
        class_id=registration.class_id,
        class_title=registration.class_title,
        expected_start_date=registration.expected_start_date,
        created_at=registration.created_at,
        created_by=registration.created_by,
        reenrollment_intent=(
            registration.reenrollment_intent.value if registration.reenrollment_intent else None
        ),
        intent_submitted_at=registration.intent_submitted_at,
        intent_submitted_by=registration.intent_submitted_by,
        linked_previous_registration_id=registration.linked_previous_registration_id,
    )


class ConflictResponse(BaseModel):
    """Response model for a registration conflict."""

    type: str
    message: str
    existing_registration_id: str | None = None
    current_count: int | None = None
    max_capacity: int | None = None


def conflict_to_response(conflict: Conflict) -> ConflictResponse:
    """Convert a Conflict to ConflictResponse."""
    return ConflictResponse(**conflict.to_dict())


class BatchFailureResponse(BaseModel):
    """Response model for one failed item of a batch."""

    index: int
    error: str
    conflicts: list[ConflictResponse]


class BatchResponse(BaseModel):
    """Response model for a batch create."""

    created: list[RegistrationResponse]
    failures: list[BatchFailureResponse]


def batch_to_response(result: BatchResult) -> BatchResponse:
    """Convert a BatchResult to BatchResponse."""
    return BatchResponse(
        created=[registration_to_response(r) for r in result.created],
        failures=[
            BatchFailureResponse(
                index=f.index,
                error=f.error,
                conflicts=[conflict_to_response(c) for c in f.conflicts],
            )
            for f in result.failures
        ],
    )


# Audit models


class AuditRecordResponse(BaseModel):
    """Response model for an audit record."""

    id: str
    registration_id: str
    is_deleted: bool
    deleted_at: datetime | None
    deleted_by: str | None
    snapshot: RegistrationResponse


def audit_to_response(record: AuditRecord) -> AuditRecordResponse:
    """Convert an AuditRecord to AuditRecordResponse."""
    return AuditRecordResponse(
        id=record.id,
        registration_id=record.registration_id,
        is_deleted=record.is_deleted,
        deleted_at=record.deleted_at,
        deleted_by=record.deleted_by,
        snapshot=registration_to_response(record.snapshot),
    )


# Trimester models


class PeriodResponse(BaseModel):
    """Response model for a calendar period."""

    trimester: str
    period_type: str
    start_date: datetime


def period_to_response(period: Period) -> PeriodResponse:
    """Convert a Period to PeriodResponse."""
    return PeriodResponse(
        trimester=period.trimester.value,
        period_type=period.period_type.value,
        start_date=period.start_date,
    )


class TrimesterStatusResponse(BaseModel):
    """Response model for the trimester routing state."""

    current_table: str
    enrollment_table: str
    current_period: PeriodResponse
    next_period: PeriodResponse | None
    intent_period_active: bool


def error_payload(message: str, data: Any = None) -> dict[str, Any]:
    """Envelope for an error response body."""
    return APIResponse[Any](data=data, error=message).model_dump()
