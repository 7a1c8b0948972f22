"""Store-backed lookups of students, instructors and group classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from lessonbook.data_store.schema import CLASSES_TABLE, INSTRUCTORS_TABLE, STUDENTS_TABLE
from lessonbook.directory.models import Instructor, Student
from lessonbook.registrations.models import GroupClass

if TYPE_CHECKING:
    from lessonbook.cache import TableReader


class UserDirectory(Protocol):
    """Interface for looking up students and instructors."""

    async def get_student_by_id(self, student_id: str) -> Student | None:
        """Get a student, or None if unknown."""
        ...

    async def get_instructor_by_id(self, instructor_id: str) -> Instructor | None:
        """Get an instructor, or None if unknown."""
        ...


class ClassCatalog(Protocol):
    """Interface for looking up group classes."""

    async def get_class_by_id(self, class_id: str) -> GroupClass | None:
        """Get a group class, or None if unknown."""
        ...


class StoreDirectory:
    """UserDirectory and ClassCatalog reading catalog tables through the cache."""

    def __init__(self, reader: TableReader) -> None:
        self._reader = reader

    async def get_student_by_id(self, student_id: str) -> Student | None:
        students = await self._reader.load(STUDENTS_TABLE, Student.from_row)
        return next((s for s in students if s.id == student_id), None)

    async def get_instructor_by_id(self, instructor_id: str) -> Instructor | None:
        instructors = await self._reader.load(INSTRUCTORS_TABLE, Instructor.from_row)
        return next((i for i in instructors if i.id == instructor_id), None)

    async def get_class_by_id(self, class_id: str) -> GroupClass | None:
        classes = await self._reader.load(CLASSES_TABLE, GroupClass.from_row)
        return next((c for c in classes if c.id == class_id), None)
