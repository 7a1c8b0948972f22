"""Data Store - Row-oriented table storage with explicit column schemas."""

from lessonbook.data_store.exceptions import (
    RowNotFoundError,
    SchemaMismatchError,
    StoreError,
    TableNotFoundError,
)
from lessonbook.data_store.schema import (
    AUDIT_SCHEMA,
    AUDIT_TABLE,
    CLASS_SCHEMA,
    CLASSES_TABLE,
    INSTRUCTOR_SCHEMA,
    INSTRUCTORS_TABLE,
    PERIOD_SCHEMA,
    PERIODS_TABLE,
    REGISTRATION_SCHEMA,
    STUDENT_SCHEMA,
    STUDENTS_TABLE,
    TRIMESTER_TABLES,
    TableSchema,
    table_schemas,
)
from lessonbook.data_store.store import DataStore, RowDecoder, SqlDataStore, ensure_tables

__all__ = [
    "AUDIT_SCHEMA",
    "AUDIT_TABLE",
    "CLASSES_TABLE",
    "CLASS_SCHEMA",
    "DataStore",
    "INSTRUCTORS_TABLE",
    "INSTRUCTOR_SCHEMA",
    "PERIODS_TABLE",
    "PERIOD_SCHEMA",
    "REGISTRATION_SCHEMA",
    "RowDecoder",
    "RowNotFoundError",
    "STUDENTS_TABLE",
    "STUDENT_SCHEMA",
    "SchemaMismatchError",
    "SqlDataStore",
    "StoreError",
    "TRIMESTER_TABLES",
    "TableNotFoundError",
    "TableSchema",
    "ensure_tables",
    "table_schemas",
]
