"""Custom exceptions for registrations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lessonbook.registrations.models import Conflict


class RegistrationError(Exception):
    """Base exception for registration errors."""


class ValidationError(RegistrationError):
    """A request field is missing, malformed or not allowed.

    Attributes:
        details: Offending field names mapped to a reason.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ConflictError(RegistrationError):
    """Candidate registration was rejected by conflict detection.

    Attributes:
        conflicts: Every conflict found, in check order.
    """

    def __init__(self, conflicts: list[Conflict]) -> None:
        kinds = ", ".join(c.type.value for c in conflicts)
        super().__init__(f"Registration conflicts: {kinds}")
        self.conflicts = conflicts


class NotFoundError(RegistrationError):
    """Registration with given ID does not exist in the table."""
