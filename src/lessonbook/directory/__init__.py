"""Directory - Students, instructors and the group class catalog."""

from lessonbook.directory.directory import ClassCatalog, StoreDirectory, UserDirectory
from lessonbook.directory.models import Instructor, Student

__all__ = [
    "ClassCatalog",
    "Instructor",
    "StoreDirectory",
    "Student",
    "UserDirectory",
]
