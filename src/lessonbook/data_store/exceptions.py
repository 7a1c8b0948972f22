"""Custom exceptions for the Data Store."""


class StoreError(Exception):
    """Base exception for Data Store errors."""


class TableNotFoundError(StoreError):
    """Table with given name does not exist."""


class RowNotFoundError(StoreError):
    """Row with given ID does not exist in the table."""


class SchemaMismatchError(StoreError):
    """Stored table header does not match the expected schema."""
