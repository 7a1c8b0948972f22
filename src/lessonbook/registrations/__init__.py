"""Registrations - Conflict detection, lifecycle and audit trail."""

from lessonbook.registrations.audit import AuditTrail
from lessonbook.registrations.conflicts import check_conflicts, generate_registration_id
from lessonbook.registrations.exceptions import (
    ConflictError,
    NotFoundError,
    RegistrationError,
    ValidationError,
)
from lessonbook.registrations.lifecycle import UPDATABLE_FIELDS, RegistrationLifecycleManager
from lessonbook.registrations.models import (
    AuditRecord,
    BatchFailure,
    BatchResult,
    CompositeId,
    Conflict,
    ConflictCheckOptions,
    ConflictCheckResult,
    ConflictType,
    GroupClass,
    RandomId,
    ReenrollmentIntent,
    Registration,
    RegistrationId,
    RegistrationRequest,
    RegistrationType,
    Weekday,
)

__all__ = [
    "UPDATABLE_FIELDS",
    "AuditRecord",
    "AuditTrail",
    "BatchFailure",
    "BatchResult",
    "CompositeId",
    "Conflict",
    "ConflictCheckOptions",
    "ConflictCheckResult",
    "ConflictError",
    "ConflictType",
    "GroupClass",
    "NotFoundError",
    "RandomId",
    "ReenrollmentIntent",
    "Registration",
    "RegistrationError",
    "RegistrationId",
    "RegistrationLifecycleManager",
    "RegistrationRequest",
    "RegistrationType",
    "ValidationError",
    "Weekday",
    "check_conflicts",
    "generate_registration_id",
]
