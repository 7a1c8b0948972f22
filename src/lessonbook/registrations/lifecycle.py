"""Registration lifecycle: create, cancel and update against the data store.

The store has no transactions. A create writes the registration row and then
the audit row; when the audit append fails the registration stays in place
and the inconsistency is logged at ERROR. Every successful mutation
invalidates the cache entries of exactly the tables it wrote to before the
call returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING, Any

from lessonbook.config import Settings
from lessonbook.data_store import RowNotFoundError, StoreError
from lessonbook.data_store.schema import TRIMESTER_TABLES
from lessonbook.logging import sanitize_for_log
from lessonbook.registrations.conflicts import check_conflicts, generate_registration_id
from lessonbook.registrations.exceptions import ConflictError, NotFoundError, ValidationError
from lessonbook.registrations.models import (
    REGISTRATION_FIELDS,
    BatchFailure,
    BatchResult,
    CompositeId,
    ConflictCheckOptions,
    GroupClass,
    RandomId,
    ReenrollmentIntent,
    Registration,
    RegistrationRequest,
    RegistrationType,
    Weekday,
)
from lessonbook.registrations.times import (
    calculate_end_time,
    format_minutes_12h,
    normalize_time,
    time_to_minutes,
)

if TYPE_CHECKING:
    from lessonbook.cache import TableReader
    from lessonbook.clock import Clock, IdGenerator
    from lessonbook.data_store import DataStore
    from lessonbook.directory import ClassCatalog, Instructor, UserDirectory
    from lessonbook.registrations.audit import AuditTrail
    from lessonbook.trimesters import TrimesterRouter

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"notes", "transportation_type", "instrument", "room_id", "expected_start_date"}
)

BUS_TRANSPORTATION = "bus"


def _required(value: str | None, name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{name} is required", {name: "required"})
    return text


def _parse_day(value: Weekday | str | int | None) -> Weekday:
    if value is None or value == "":
        raise ValidationError("day is required", {"day": "required"})
    try:
        return Weekday.parse(value)
    except ValueError as e:
        raise ValidationError(str(e), {"day": value}) from e


def _parse_start_time(value: str | None) -> str:
    text = _required(value, "start_time")
    try:
        return normalize_time(text)
    except ValueError as e:
        raise ValidationError(str(e), {"start_time": value}) from e


def _parse_length(value: int | str | None) -> int:
    if value is None or value == "":
        raise ValidationError("length_minutes is required", {"length_minutes": "required"})
    try:
        length = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Invalid lesson length: {value!r}", {"length_minutes": value}
        ) from e
    if length <= 0:
        raise ValidationError("Lesson length must be positive", {"length_minutes": value})
    return length


def _parse_type(value: RegistrationType | str) -> RegistrationType:
    try:
        return RegistrationType(str(value).strip().lower())
    except ValueError as e:
        raise ValidationError(
            f"Invalid registration type: {value!r}", {"registration_type": value}
        ) from e


class RegistrationLifecycleManager:
    """Orchestrates registration writes and is the only cache invalidator.

    Each create runs load, check, write and invalidate as one async
    sequence. There is no mutual exclusion between concurrent calls, so two
    creates reading the same snapshot can both succeed.
    """

    def __init__(
        self,
        store: DataStore,
        reader: TableReader,
        router: TrimesterRouter,
        directory: UserDirectory,
        catalog: ClassCatalog,
        audit: AuditTrail,
        clock: Clock,
        id_generator: IdGenerator,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._reader = reader
        self._router = router
        self._directory = directory
        self._catalog = catalog
        self._audit = audit
        self._clock = clock
        self._ids = id_generator
        self._settings = settings or Settings()

    # --- Create ---

    async def create(
        self,
        request: RegistrationRequest,
        trimester_table: str | None = None,
        *,
        created_by: str,
        privileged: bool = False,
    ) -> Registration:
        """Admit a new registration.

        Args:
            request: Caller-supplied registration data.
            trimester_table: Target table. Defaults to the enrollment table.
            created_by: Identity of the caller, required.
            privileged: Skip the class capacity check.

        Returns:
            The persisted registration.

        Raises:
            ValidationError: If a field is missing or invalid, or a referenced
                student, instructor or class doesn't exist.
            ConflictError: If conflict detection rejects the candidate.
            StoreError: If the registration row can't be written.
        """
        created_by = _required(created_by, "created_by")
        candidate, group_class = await self._build_candidate(request)

        table = await self._enrollment_table(trimester_table)
        existing = await self._reader.load(table, Registration.from_row)

        result = check_conflicts(
            candidate,
            existing,
            ConflictCheckOptions(
                group_class=group_class,
                skip_capacity_check=privileged,
                default_capacity=self._settings.default_class_capacity,
            ),
        )
        if result.has_conflicts:
            logger.info(
                "Rejected registration for student %s in %s: %s",
                candidate.student_id,
                table,
                ", ".join(c.type.value for c in result.conflicts),
            )
            raise ConflictError(result.conflicts)

        if self._settings.use_random_registration_ids:
            candidate.id = RandomId(self._ids.new_id())
        else:
            candidate.id = generate_registration_id(candidate)
        candidate.created_at = self._clock.now()
        candidate.created_by = created_by

        await self._store.append(table, candidate.to_row())
        self._reader.cache.invalidate(table)
        logger.info(
            "Created registration %s in %s by %s",
            candidate.id_text,
            table,
            sanitize_for_log(created_by),
        )

        await self._audit_created(candidate, created_by)
        return candidate

    async def create_batch(
        self,
        requests: Iterable[RegistrationRequest],
        trimester_table: str | None = None,
        *,
        created_by: str,
        privileged: bool = False,
    ) -> BatchResult:
        """Create registrations one after another.

        Validation and conflict failures are collected per item; the rest
        of the batch still runs. Store failures abort the batch.
        """
        result = BatchResult()
        for index, request in enumerate(requests):
            try:
                registration = await self.create(
                    request, trimester_table, created_by=created_by, privileged=privileged
                )
            except ConflictError as e:
                result.failures.append(
                    BatchFailure(index=index, request=request, error=str(e), conflicts=e.conflicts)
                )
            except ValidationError as e:
                result.failures.append(BatchFailure(index=index, request=request, error=str(e)))
            else:
                result.created.append(registration)

        logger.info(
            "Batch create finished: %d created, %d failed",
            len(result.created),
            len(result.failures),
        )
        return result

    async def _build_candidate(
        self, request: RegistrationRequest
    ) -> tuple[Registration, GroupClass | None]:
        registration_type = _parse_type(request.registration_type)
        student_id = _required(request.student_id, "student_id")

        group_class: GroupClass | None = None
        if registration_type == RegistrationType.GROUP:
            class_id = _required(request.class_id, "class_id")
            student, group_class = await asyncio.gather(
                self._directory.get_student_by_id(student_id),
                self._catalog.get_class_by_id(class_id),
            )
            if group_class is None:
                raise ValidationError(f"Class {class_id} not found", {"class_id": class_id})
            self._check_class(group_class)
            instructor_id = group_class.instructor_id
            instructor = await self._directory.get_instructor_by_id(instructor_id)
            day = group_class.day
            start_time = group_class.start_time
            length = group_class.length_minutes
            instrument = request.instrument or group_class.instrument
            transportation = (
                request.transportation_type or self._settings.default_group_transportation
            )
        else:
            instructor_id = _required(request.instructor_id, "instructor_id")
            day = _parse_day(request.day)
            start_time = _parse_start_time(request.start_time)
            length = _parse_length(request.length_minutes)
            student, instructor = await asyncio.gather(
                self._directory.get_student_by_id(student_id),
                self._directory.get_instructor_by_id(instructor_id),
            )
            instrument = request.instrument or ""
            transportation = request.transportation_type or ""

        if student is None:
            raise ValidationError(f"Student {student_id} not found", {"student_id": student_id})
        if instructor is None:
            raise ValidationError(
                f"Instructor {instructor_id} not found", {"instructor_id": instructor_id}
            )

        self._check_bus_deadline(transportation, day, start_time, length)

        candidate = Registration(
            id=CompositeId(()),
            student_id=student_id,
            instructor_id=instructor_id,
            day=day,
            start_time=start_time,
            length_minutes=length,
            registration_type=registration_type,
            room_id=self._assign_room(instructor, day, request.room_id),
            instrument=instrument,
            transportation_type=transportation,
            notes=request.notes or "",
            class_id=group_class.id if group_class else None,
            class_title=group_class.title if group_class else None,
            expected_start_date=request.expected_start_date,
            linked_previous_registration_id=request.linked_previous_registration_id,
        )
        return candidate, group_class

    def _check_class(self, group_class: GroupClass) -> None:
        if not group_class.title:
            raise ValidationError(
                "Group class title is required", {"class_id": group_class.id}
            )
        if group_class.is_scheduled or group_class.id in self._settings.waitlist_class_ids:
            return
        raise ValidationError(
            "Group class must have day, start time, and length", {"class_id": group_class.id}
        )

    def _check_bus_deadline(
        self, transportation: str, day: Weekday | None, start_time: str, length: int | None
    ) -> None:
        if transportation != BUS_TRANSPORTATION or day is None or not start_time or not length:
            return
        deadline = self._settings.bus_deadlines.get(day.value)
        if not deadline:
            return
        end_time = calculate_end_time(start_time, length)
        if time_to_minutes(end_time) > time_to_minutes(deadline):
            raise ValidationError(
                f"Late Bus is not available for lessons ending after "
                f"{format_minutes_12h(time_to_minutes(deadline))} on {day}. "
                f"This lesson ends at {format_minutes_12h(time_to_minutes(end_time))}.",
                {"transportation_type": transportation},
            )

    def _assign_room(
        self, instructor: Instructor, day: Weekday | None, requested: str | None
    ) -> str:
        room = instructor.room_for(day) if day is not None else None
        if room:
            return room
        if requested:
            return requested
        logger.warning(
            "No room assignment found for instructor %s on %s, using %s",
            instructor.id,
            day,
            self._settings.default_room_id,
        )
        return self._settings.default_room_id

    async def _audit_created(self, registration: Registration, created_by: str) -> None:
        try:
            await self._audit.record_created(registration, created_by)
        except StoreError:
            logger.exception(
                "Registration %s was written but its creation audit record was not",
                registration.id_text,
            )
            return
        self._reader.cache.invalidate(self._audit.table)

    # --- Delete ---

    async def delete(
        self,
        registration_id: str,
        trimester_table: str | None = None,
        *,
        performed_by: str,
    ) -> Registration:
        """Cancel a registration by removing its row.

        Cancellation is not re-validated against business rules.

        Args:
            registration_id: Id of the registration.
            trimester_table: Table holding it. Defaults to the current table.
            performed_by: Identity of the caller, required.

        Returns:
            The removed registration.

        Raises:
            ValidationError: If performed_by is empty.
            NotFoundError: If the table has no such registration.
        """
        performed_by = _required(performed_by, "performed_by")
        table = await self._current_table(trimester_table)
        registration = await self._find(table, registration_id)

        try:
            await self._store.delete(table, registration.id_text)
        except RowNotFoundError as e:
            self._reader.cache.invalidate(table)
            raise NotFoundError(f"Registration {registration_id} not found in {table}") from e
        self._reader.cache.invalidate(table)
        logger.info(
            "Deleted registration %s from %s by %s",
            registration.id_text,
            table,
            sanitize_for_log(performed_by),
        )

        try:
            await self._audit.record_deleted(registration, performed_by)
        except StoreError:
            logger.exception(
                "Registration %s was deleted but its deletion audit record was not",
                registration.id_text,
            )
        else:
            self._reader.cache.invalidate(self._audit.table)
        return registration

    # --- Update ---

    async def update(
        self,
        registration_id: str,
        trimester_table: str | None,
        changes: Mapping[str, Any],
    ) -> Registration:
        """Change the updatable fields of a registration.

        The whole row is written back. Concurrent updates are last writer
        wins.

        Raises:
            ValidationError: If a field outside UPDATABLE_FIELDS is changed.
            NotFoundError: If the table has no such registration.
        """
        disallowed = sorted(set(changes) - UPDATABLE_FIELDS)
        if disallowed:
            details = {
                name: "not updatable" if name in REGISTRATION_FIELDS else "unknown field"
                for name in disallowed
            }
            raise ValidationError(f"Cannot update fields: {', '.join(disallowed)}", details)

        values = self._coerce_changes(changes)
        table = await self._current_table(trimester_table)
        registration = await self._find(table, registration_id)
        updated = replace(registration, **values)
        self._check_bus_deadline(
            updated.transportation_type, updated.day, updated.start_time, updated.length_minutes
        )
        await self._overwrite(table, updated)
        logger.info("Updated registration %s in %s: %s", updated.id_text, table, sorted(values))
        return updated

    async def update_intent(
        self,
        registration_id: str,
        intent: ReenrollmentIntent | str,
        *,
        submitted_by: str,
        trimester_table: str | None = None,
    ) -> Registration:
        """Record a family's re-enrollment intent on a registration."""
        submitted_by = _required(submitted_by, "submitted_by")
        try:
            parsed = ReenrollmentIntent(str(intent).strip().lower())
        except ValueError as e:
            raise ValidationError(f"Invalid intent: {intent!r}", {"intent": intent}) from e

        table = await self._current_table(trimester_table)
        registration = await self._find(table, registration_id)
        updated = replace(
            registration,
            reenrollment_intent=parsed,
            intent_submitted_at=self._clock.now(),
            intent_submitted_by=submitted_by,
        )
        await self._overwrite(table, updated)
        logger.info(
            "Recorded intent %s for %s by %s",
            parsed,
            updated.id_text,
            sanitize_for_log(submitted_by),
        )
        return updated

    @staticmethod
    def _coerce_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, value in changes.items():
            if name == "expected_start_date":
                if value in (None, ""):
                    values[name] = None
                elif isinstance(value, date):
                    values[name] = value
                else:
                    try:
                        values[name] = date.fromisoformat(str(value))
                    except ValueError as e:
                        raise ValidationError(
                            f"Invalid date: {value!r}", {"expected_start_date": value}
                        ) from e
            else:
                values[name] = "" if value is None else str(value)
        return values

    async def _overwrite(self, table: str, registration: Registration) -> None:
        try:
            await self._store.update(table, registration.id_text, registration.to_row())
        except RowNotFoundError as e:
            self._reader.cache.invalidate(table)
            raise NotFoundError(
                f"Registration {registration.id_text} not found in {table}"
            ) from e
        self._reader.cache.invalidate(table)

    # --- Reads ---

    async def get(self, registration_id: str, trimester_table: str | None = None) -> Registration:
        """Get a registration from a table (the current one by default).

        Raises:
            NotFoundError: If the table has no such registration.
        """
        table = await self._current_table(trimester_table)
        return await self._find(table, registration_id)

    async def list_registrations(self, trimester_table: str | None = None) -> list[Registration]:
        """All registrations in a table (the current one by default)."""
        table = await self._current_table(trimester_table)
        return await self._reader.load(table, Registration.from_row)

    async def list_for_student(self, student_id: str) -> list[Registration]:
        """A student's registrations across every trimester table."""
        tables = await asyncio.gather(
            *(self._reader.load(table, Registration.from_row) for table in TRIMESTER_TABLES)
        )
        return [reg for rows in tables for reg in rows if reg.student_id == student_id]

    # --- Helpers ---

    async def _find(self, table: str, registration_id: str) -> Registration:
        for registration in await self._reader.load(table, Registration.from_row):
            if registration.id_text == registration_id:
                return registration
        raise NotFoundError(f"Registration {registration_id} not found in {table}")

    async def _enrollment_table(self, trimester_table: str | None) -> str:
        if trimester_table is not None:
            return self._router.validate_table(trimester_table)
        return await self._router.get_enrollment_trimester_table()

    async def _current_table(self, trimester_table: str | None) -> str:
        if trimester_table is not None:
            return self._router.validate_table(trimester_table)
        return await self._router.get_current_trimester_table()
