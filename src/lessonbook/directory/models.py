"""Data models for students and instructors."""

from __future__ import annotations

from dataclasses import dataclass, field

from lessonbook.data_store.schema import INSTRUCTOR_SCHEMA, STUDENT_SCHEMA
from lessonbook.registrations.models import Weekday


@dataclass
class Student:
    """A student who can be registered for lessons."""

    id: str
    first_name: str = ""
    last_name: str = ""
    grade: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_row(self) -> list[str]:
        return STUDENT_SCHEMA.encode(
            {
                "id": self.id,
                "firstName": self.first_name,
                "lastName": self.last_name,
                "grade": self.grade,
            }
        )

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> Student | None:
        record = STUDENT_SCHEMA.decode(row)
        if not record["id"]:
            return None
        grade = record["grade"].strip()
        return cls(
            id=record["id"],
            first_name=record["firstName"],
            last_name=record["lastName"],
            grade=int(grade) if grade else None,
        )


@dataclass
class Instructor:
    """An instructor with a teaching room per school day.

    Attributes:
        rooms: Room id per weekday. Days without a room are absent.
    """

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    rooms: dict[Weekday, str] = field(default_factory=dict)

    def room_for(self, day: Weekday) -> str | None:
        """Room the instructor teaches in on a given day."""
        return self.rooms.get(day)

    def to_row(self) -> list[str]:
        record = {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }
        for day in Weekday:
            record[f"{day.value.lower()}RoomId"] = self.rooms.get(day, "")
        return INSTRUCTOR_SCHEMA.encode(record)

    @classmethod
    def from_row(cls, row: tuple[str, ...]) -> Instructor | None:
        record = INSTRUCTOR_SCHEMA.decode(row)
        if not record["id"]:
            return None
        rooms = {
            day: record[f"{day.value.lower()}RoomId"]
            for day in Weekday
            if record[f"{day.value.lower()}RoomId"]
        }
        return cls(
            id=record["id"],
            first_name=record["firstName"],
            last_name=record["lastName"],
            email=record["email"],
            rooms=rooms,
        )
