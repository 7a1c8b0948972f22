"""Explicit column schemas for row-oriented tables.

Rows come out of the store as ordered lists of text cells. A TableSchema maps
column names to positions once, so call sites work with named fields and
never index into rows directly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from lessonbook.data_store.exceptions import SchemaMismatchError

ID_COLUMN = "id"


def to_cell(value: Any) -> str:
    """Convert a Python value to its stored text form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class TableSchema:
    """Ordered column layout of one kind of table.

    Attributes:
        columns: Column names in stored order. The first column must be "id".
    """

    columns: tuple[str, ...]
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.columns:
            raise ValueError("Schema must have at least one column")
        if self.columns[0] != ID_COLUMN:
            raise ValueError(f"First column must be '{ID_COLUMN}', got '{self.columns[0]}'")
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Duplicate column names in schema: {self.columns}")
        object.__setattr__(self, "_index", {name: i for i, name in enumerate(self.columns)})

    def index_of(self, column: str) -> int:
        """Get the position of a column.

        Raises:
            KeyError: If the column is not part of the schema.
        """
        return self._index[column]

    def decode(self, row: Sequence[Any]) -> dict[str, str]:
        """Map a stored row to a column-name dictionary.

        Short rows (trailing empty cells trimmed by the store) are padded
        with empty strings.
        """
        cells = list(row)
        if len(cells) > len(self.columns):
            raise ValueError(
                f"Row has {len(cells)} cells but schema has {len(self.columns)} columns"
            )
        cells.extend([""] * (len(self.columns) - len(cells)))
        return {name: "" if cell is None else str(cell) for name, cell in zip(self.columns, cells)}

    def encode(self, record: Mapping[str, Any]) -> list[str]:
        """Map a column-name dictionary to a stored row.

        Raises:
            ValueError: If the record carries a column the schema doesn't know.
        """
        unknown = set(record) - set(self.columns)
        if unknown:
            raise ValueError(f"Unknown columns for schema: {sorted(unknown)}")
        return [to_cell(record.get(name)) for name in self.columns]

    def validate_header(self, header: Sequence[str]) -> None:
        """Check a stored header against this schema.

        Raises:
            SchemaMismatchError: If names or order differ.
        """
        if tuple(header) != self.columns:
            raise SchemaMismatchError(
                f"Header {list(header)} does not match expected columns {list(self.columns)}"
            )


REGISTRATION_COLUMNS = (
    "id",
    "studentId",
    "instructorId",
    "day",
    "startTime",
    "length",
    "registrationType",
    "roomId",
    "instrument",
    "transportationType",
    "notes",
    "classId",
    "classTitle",
    "expectedStartDate",
    "createdAt",
    "createdBy",
    "reenrollmentIntent",
    "intentSubmittedAt",
    "intentSubmittedBy",
    "linkedPreviousRegistrationId",
)

REGISTRATION_SCHEMA = TableSchema(REGISTRATION_COLUMNS)

AUDIT_SCHEMA = TableSchema(
    (
        "id",
        "registrationId",
        *REGISTRATION_COLUMNS[1:],
        "isDeleted",
        "deletedAt",
        "deletedBy",
    )
)

STUDENT_SCHEMA = TableSchema(("id", "firstName", "lastName", "grade"))

INSTRUCTOR_SCHEMA = TableSchema(
    (
        "id",
        "firstName",
        "lastName",
        "email",
        "mondayRoomId",
        "tuesdayRoomId",
        "wednesdayRoomId",
        "thursdayRoomId",
        "fridayRoomId",
    )
)

CLASS_SCHEMA = TableSchema(
    (
        "id",
        "instructorId",
        "day",
        "startTime",
        "length",
        "instrument",
        "title",
        "size",
        "minimumGrade",
        "maximumGrade",
    )
)

PERIOD_SCHEMA = TableSchema(("id", "trimester", "periodType", "startDate"))

AUDIT_TABLE = "registrations_audit"
STUDENTS_TABLE = "students"
INSTRUCTORS_TABLE = "instructors"
CLASSES_TABLE = "classes"
PERIODS_TABLE = "periods"
TRIMESTER_TABLES = ("registrations_fall", "registrations_winter", "registrations_spring")


def table_schemas() -> dict[str, TableSchema]:
    """All tables the service expects, keyed by table name."""
    schemas = {
        AUDIT_TABLE: AUDIT_SCHEMA,
        STUDENTS_TABLE: STUDENT_SCHEMA,
        INSTRUCTORS_TABLE: INSTRUCTOR_SCHEMA,
        CLASSES_TABLE: CLASS_SCHEMA,
        PERIODS_TABLE: PERIOD_SCHEMA,
    }
    for table in TRIMESTER_TABLES:
        schemas[table] = REGISTRATION_SCHEMA
    return schemas
