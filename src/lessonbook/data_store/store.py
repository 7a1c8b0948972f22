"""DataStore - Row-oriented table storage.

The store offers whole-table reads, single-row append/update and row
deletion. There is no query language, no locking and no multi-row
transaction; callers build everything else on top of these calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lessonbook.data_store.database import Database
from lessonbook.data_store.exceptions import (
    RowNotFoundError,
    StoreError,
    TableNotFoundError,
)
from lessonbook.data_store.models import TableHeader, TableRow
from lessonbook.data_store.schema import TableSchema, table_schemas

logger = logging.getLogger(__name__)

T = TypeVar("T")

Row = Sequence[str]
RowDecoder = Callable[[tuple[str, ...]], T | None]


class DataStore(Protocol):
    """Interface of the table store consumed by the registration core."""

    async def list_all(self, table: str, decoder: RowDecoder[T]) -> list[T]:
        """Read every row of a table, mapped through decoder."""
        ...

    async def append(self, table: str, row: Row) -> None:
        """Append one row."""
        ...

    async def update(self, table: str, row_id: str, row: Row) -> None:
        """Overwrite the row whose id cell equals row_id."""
        ...

    async def delete(self, table: str, row_id: str) -> None:
        """Remove the row whose id cell equals row_id."""
        ...

    async def get_header(self, table: str) -> list[str]:
        """Get the stored column names of a table."""
        ...

    async def ensure_table(self, table: str, schema: TableSchema) -> None:
        """Create the table if missing and verify its header."""
        ...


class SqlDataStore:
    """DataStore backed by SQLite through SQLAlchemy.

    Session work is blocking, so each call runs in a worker thread. A lock
    serializes those calls because the in-memory engine shares one
    connection between threads.
    """

    def __init__(self, db_path: str = "lessonbook.db") -> None:
        """Initialize the store, creating the backing tables if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._lock = threading.Lock()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    async def _run(self, func: Callable[..., T], *args: object) -> T:
        def call() -> T:
            with self._lock:
                try:
                    return func(*args)
                except SQLAlchemyError as e:
                    raise StoreError(f"Storage failure: {e}") from e

        return await asyncio.to_thread(call)

    # --- Table Operations ---

    async def ensure_table(self, table: str, schema: TableSchema) -> None:
        """Create the table if missing and verify its header.

        Args:
            table: Table name
            schema: Expected column layout

        Raises:
            SchemaMismatchError: If an existing header differs from the schema
        """
        header = await self._run(self._ensure_table, table, list(schema.columns))
        schema.validate_header(header)

    def _ensure_table(self, table: str, columns: list[str]) -> list[str]:
        with self._db.session() as session:
            existing = session.get(TableHeader, table)
            if existing is not None:
                return list(json.loads(existing.columns))
            session.add(TableHeader(table_name=table, columns=json.dumps(columns)))
        logger.info("Created table %s with %d columns", table, len(columns))
        return columns

    async def get_header(self, table: str) -> list[str]:
        """Get the stored column names of a table.

        Raises:
            TableNotFoundError: If the table doesn't exist
        """
        return await self._run(self._get_header, table)

    def _get_header(self, table: str) -> list[str]:
        with self._db.session() as session:
            return list(json.loads(self._require_table(session, table).columns))

    # --- Row Operations ---

    async def list_all(self, table: str, decoder: RowDecoder[T]) -> list[T]:
        """Read every row of a table, mapped through decoder.

        Rows for which the decoder returns None are skipped. Rows the decoder
        rejects with ValueError are skipped with a warning, matching how a
        hand-edited sheet is tolerated.

        Args:
            table: Table name
            decoder: Callable mapping a row tuple to an entity

        Returns:
            Decoded entities in stored order

        Raises:
            TableNotFoundError: If the table doesn't exist
        """
        rows = await self._run(self._list_rows, table)
        result: list[T] = []
        for row in rows:
            try:
                entity = decoder(row)
            except ValueError as e:
                logger.warning("Skipping invalid row %s in %s: %s", row[:1], table, e)
                continue
            if entity is not None:
                result.append(entity)
        return result

    def _list_rows(self, table: str) -> list[tuple[str, ...]]:
        with self._db.session() as session:
            self._require_table(session, table)
            stmt = select(TableRow).where(TableRow.table_name == table).order_by(TableRow.position)
            return [tuple(json.loads(r.cells)) for r in session.execute(stmt).scalars()]

    async def append(self, table: str, row: Row) -> None:
        """Append one row.

        Raises:
            TableNotFoundError: If the table doesn't exist
        """
        await self._run(self._append, table, list(row))

    def _append(self, table: str, cells: list[str]) -> None:
        if not cells or not cells[0]:
            raise StoreError(f"Row for table '{table}' must start with a non-empty id")
        with self._db.session() as session:
            self._require_table(session, table)
            session.add(TableRow(table_name=table, row_id=cells[0], cells=json.dumps(cells)))

    async def update(self, table: str, row_id: str, row: Row) -> None:
        """Overwrite the row whose id cell equals row_id.

        Raises:
            TableNotFoundError: If the table doesn't exist
            RowNotFoundError: If no row has that id
        """
        await self._run(self._update, table, row_id, list(row))

    def _update(self, table: str, row_id: str, cells: list[str]) -> None:
        with self._db.session() as session:
            record = self._find_row(session, table, row_id)
            record.row_id = cells[0]
            record.cells = json.dumps(cells)

    async def delete(self, table: str, row_id: str) -> None:
        """Remove the row whose id cell equals row_id.

        Raises:
            TableNotFoundError: If the table doesn't exist
            RowNotFoundError: If no row has that id
        """
        await self._run(self._delete, table, row_id)

    def _delete(self, table: str, row_id: str) -> None:
        with self._db.session() as session:
            session.delete(self._find_row(session, table, row_id))

    # --- Helpers ---

    @staticmethod
    def _require_table(session: Session, table: str) -> TableHeader:
        header = session.get(TableHeader, table)
        if header is None:
            raise TableNotFoundError(f"Table '{table}' not found")
        return header

    def _find_row(self, session: Session, table: str, row_id: str) -> TableRow:
        self._require_table(session, table)
        stmt = (
            select(TableRow)
            .where(TableRow.table_name == table, TableRow.row_id == row_id)
            .order_by(TableRow.position)
        )
        record = session.execute(stmt).scalars().first()
        if record is None:
            raise RowNotFoundError(f"Row with id '{row_id}' not found in table '{table}'")
        return record


async def ensure_tables(store: DataStore) -> None:
    """Create missing service tables and verify every stored header."""
    for table, schema in table_schemas().items():
        await store.ensure_table(table, schema)
