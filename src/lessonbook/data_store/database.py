"""SQLite engine and session handling for the SQL-backed data store."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lessonbook.data_store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"
BUSY_TIMEOUT_MS = 5000


def sqlite_url(db_path: str) -> str:
    """SQLAlchemy URL for a database path or ":memory:"."""
    if db_path == MEMORY:
        return "sqlite:///:memory:"
    return f"sqlite:///{Path(db_path).expanduser()}"


class Database:
    """Lazily created SQLite engine shared by every store call.

    File databases run in WAL mode with a busy timeout, so the API server
    and the command-line tools can open the same file. An in-memory database
    lives on a single pooled connection for the lifetime of the engine.
    """

    def __init__(self, db_path: str = "lessonbook.db") -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
        """
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        # Store calls run in worker threads.
        connect_args = {"check_same_thread": False}
        if self.is_memory:
            return create_engine(
                sqlite_url(self.db_path), poolclass=StaticPool, connect_args=connect_args
            )

        Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(sqlite_url(self.db_path), connect_args=connect_args)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
            cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
            cursor.close()

        return engine

    def create_tables(self) -> None:
        """Create the header and row tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the engine and its connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
