"""Conflict detection for candidate registrations.

Every function here is pure: given a candidate and the registrations already
in its trimester table, decide whether the candidate may be admitted. All
checks run on every call and each contributes at most one conflict, so the
caller sees the complete list of reasons at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from lessonbook.registrations.exceptions import ValidationError
from lessonbook.registrations.models import (
    CompositeId,
    Conflict,
    ConflictCheckOptions,
    ConflictCheckResult,
    ConflictType,
    Registration,
    RegistrationType,
)
from lessonbook.registrations.times import (
    calculate_end_time,
    format_minutes,
    time_to_minutes,
    times_overlap,
)

__all__ = [
    "calculate_end_time",
    "check_class_capacity",
    "check_conflicts",
    "check_duplicate",
    "check_instructor_schedule",
    "check_student_schedule",
    "format_minutes",
    "generate_registration_id",
    "parse_time",
    "times_overlap",
]


def parse_time(value: str) -> int:
    """Minutes since midnight for "HH:MM" or "H:MM AM/PM".

    Raises:
        ValidationError: If the value is not a time of day.
    """
    try:
        return time_to_minutes(value)
    except ValueError as e:
        raise ValidationError(str(e), {"start_time": value}) from e


def generate_registration_id(candidate: Registration) -> CompositeId:
    """Deterministic id of a candidate.

    Private lessons are keyed on student, instructor, day and start time;
    group registrations on student and class.
    """
    if candidate.registration_type == RegistrationType.GROUP:
        return CompositeId((candidate.student_id, candidate.class_id or ""))
    return CompositeId(
        (
            candidate.student_id,
            candidate.instructor_id,
            candidate.day.value,
            candidate.start_time,
        )
    )


def check_duplicate(
    candidate: Registration, existing: Iterable[Registration]
) -> Conflict | None:
    """Same student already in the same class, or in the same private slot."""
    is_group = candidate.registration_type == RegistrationType.GROUP
    start = None if is_group else parse_time(candidate.start_time)
    for reg in existing:
        if reg.student_id != candidate.student_id:
            continue
        if is_group:
            same = reg.class_id == candidate.class_id
        else:
            same = (
                reg.is_scheduled
                and reg.instructor_id == candidate.instructor_id
                and reg.day == candidate.day
                and parse_time(reg.start_time) == start
            )
        if same:
            return Conflict(
                type=ConflictType.DUPLICATE,
                message="Student is already registered for this class/lesson",
                existing_registration_id=reg.id_text,
            )
    return None


def _find_overlap(
    candidate: Registration, existing: Iterable[Registration], key: str
) -> Registration | None:
    wanted = getattr(candidate, key)
    for reg in existing:
        if not reg.is_scheduled:
            continue
        if getattr(reg, key) != wanted or reg.day != candidate.day:
            continue
        if times_overlap(
            reg.start_time, reg.length_minutes, candidate.start_time, candidate.length_minutes
        ):
            return reg
    return None


def check_student_schedule(
    candidate: Registration, existing: Iterable[Registration]
) -> Conflict | None:
    """Student already has a lesson overlapping the candidate's slot."""
    reg = _find_overlap(candidate, existing, "student_id")
    if reg is None:
        return None
    return Conflict(
        type=ConflictType.STUDENT_SCHEDULE,
        message=(
            f"Student has conflicting lesson on {candidate.day} at {candidate.start_time}"
        ),
        existing_registration_id=reg.id_text,
    )


def check_instructor_schedule(
    candidate: Registration, existing: Iterable[Registration]
) -> Conflict | None:
    """Instructor already teaches a lesson overlapping the candidate's slot."""
    reg = _find_overlap(candidate, existing, "instructor_id")
    if reg is None:
        return None
    return Conflict(
        type=ConflictType.INSTRUCTOR_SCHEDULE,
        message=(
            f"Instructor has conflicting lesson on {candidate.day} at {candidate.start_time}"
        ),
        existing_registration_id=reg.id_text,
    )


def check_class_capacity(
    candidate: Registration,
    existing: Iterable[Registration],
    options: ConflictCheckOptions,
) -> Conflict | None:
    """Class already holds as many students as its size allows."""
    group_class = options.group_class
    max_capacity = (group_class.size if group_class else None) or options.default_capacity
    current_count = sum(1 for reg in existing if reg.class_id == candidate.class_id)
    if current_count < max_capacity:
        return None
    return Conflict(
        type=ConflictType.CLASS_CAPACITY,
        message=f"Class has reached maximum capacity ({max_capacity} students)",
        current_count=current_count,
        max_capacity=max_capacity,
    )


def check_conflicts(
    candidate: Registration,
    existing: Sequence[Registration],
    options: ConflictCheckOptions | None = None,
) -> ConflictCheckResult:
    """Run every check against the candidate.

    Args:
        candidate: Registration that would be created.
        existing: Registrations already in the candidate's trimester table.
        options: Resolved group class and capacity bypass flag.

    Returns:
        Result holding each conflict found, in check order.

    Raises:
        ValidationError: If a scheduled candidate's start time can't be parsed.
    """
    options = options or ConflictCheckOptions()
    if candidate.is_scheduled:
        parse_time(candidate.start_time)

    found: list[Conflict | None] = [check_duplicate(candidate, existing)]
    if candidate.registration_type == RegistrationType.PRIVATE:
        found.append(check_student_schedule(candidate, existing))
        found.append(check_instructor_schedule(candidate, existing))
    elif not options.skip_capacity_check:
        found.append(check_class_capacity(candidate, existing, options))

    return ConflictCheckResult(conflicts=[c for c in found if c is not None])
