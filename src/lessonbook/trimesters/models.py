"""Data models for the program calendar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from lessonbook.data_store.schema import PERIOD_SCHEMA
from lessonbook.trimesters.exceptions import InvalidTrimesterError

TABLE_PREFIX = "registrations_"


class Trimester(StrEnum):
    """School terms, in calendar order."""

    FALL = "fall"
    WINTER = "winter"
    SPRING = "spring"

    @classmethod
    def parse(cls, value: Trimester | str) -> Trimester:
        """Parse a trimester name, ignoring case.

        Raises:
            InvalidTrimesterError: If the name is unknown.
        """
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise InvalidTrimesterError(f"Invalid trimester: {value!r}") from e

    @property
    def table(self) -> str:
        """Registration table holding this trimester's registrations."""
        return f"{TABLE_PREFIX}{self.value}"

    def next(self) -> Trimester:
        """Following trimester; spring wraps around to fall."""
        members = list(Trimester)
        return members[(members.index(self) + 1) % len(members)]


class PeriodType(StrEnum):
    """Phases of a trimester's enrollment calendar."""

    INTENT = "intent"
    PRIORITY_ENROLLMENT = "priorityEnrollment"
    OPEN_ENROLLMENT = "openEnrollment"
    REGISTRATION = "registration"

    @property
    def is_enrollment(self) -> bool:
        return self in (PeriodType.PRIORITY_ENROLLMENT, PeriodType.OPEN_ENROLLMENT)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


@dataclass
class Period:
    """A calendar period starting at start_date and lasting until the next one.

    Attributes:
        trimester: Trimester the period belongs to.
        period_type: Phase of the calendar.
        start_date: When the period begins, UTC.
    """

    id: str
    trimester: Trimester
    period_type: PeriodType
    start_date: datetime

    def to_row(self) -> list[str]:
        return PERIOD_SCHEMA.encode(
            {
                "id": self.id,
                "trimester": self.trimester,
                "periodType": self.period_type,
                "startDate": self.start_date,
            }
        )

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> Period | None:
        """Decoder for the periods table. Rows without a start date are ignored."""
        record = PERIOD_SCHEMA.decode(row)
        if not record["id"] or not record["startDate"]:
            return None
        try:
            trimester = Trimester.parse(record["trimester"])
        except InvalidTrimesterError as e:
            raise ValueError(str(e)) from e
        return cls(
            id=record["id"],
            trimester=trimester,
            period_type=PeriodType(record["periodType"]),
            start_date=as_utc(datetime.fromisoformat(record["startDate"])),
        )
