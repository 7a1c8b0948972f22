"""Integration tests for the SQLite Database wrapper."""

import tempfile
from pathlib import Path

import pytest
from sqlalchemy import select, text

from lessonbook.data_store.database import Database, sqlite_url
from lessonbook.data_store.models import TableHeader


@pytest.fixture
def temp_db_path() -> str:
    """Create a temporary database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        return f.name


@pytest.fixture
def database(temp_db_path: str):
    """Create a database instance with tables."""
    db = Database(temp_db_path)
    db.create_tables()
    yield db
    db.close()
    # Cleanup
    Path(temp_db_path).unlink(missing_ok=True)
    Path(f"{temp_db_path}-wal").unlink(missing_ok=True)
    Path(f"{temp_db_path}-shm").unlink(missing_ok=True)


@pytest.mark.integration
class TestDatabaseSetup:
    """Tests for engine configuration."""

    def test_sqlite_url(self) -> None:
        """Test building SQLite URLs."""
        assert sqlite_url(":memory:") == "sqlite:///:memory:"
        assert sqlite_url("/tmp/x.db") == "sqlite:////tmp/x.db"

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test the database file's directory is created."""
        db = Database(str(tmp_path / "nested" / "lessons.db"))
        try:
            db.create_tables()
            assert (tmp_path / "nested" / "lessons.db").exists()
        finally:
            db.close()

    def test_file_database_pragmas(self, database: Database) -> None:
        """Test file databases use WAL and a busy timeout."""
        with database.engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 5000

    def test_memory_database(self) -> None:
        """Test an in-memory database keeps data across sessions."""
        db = Database(":memory:")
        try:
            db.create_tables()
            with db.session() as session:
                session.add(TableHeader(table_name="t", columns='["id"]'))
            with db.session() as session:
                assert session.get(TableHeader, "t") is not None
        finally:
            db.close()


@pytest.mark.integration
class TestSession:
    """Tests for Database.session."""

    def test_commits_on_success(self, database: Database) -> None:
        """Test sessions commit on success."""
        with database.session() as session:
            session.add(TableHeader(table_name="students", columns='["id"]'))

        with database.session() as session:
            names = session.execute(select(TableHeader.table_name)).scalars().all()
        assert names == ["students"]

    def test_rolls_back_on_error(self, database: Database) -> None:
        """Test sessions roll back on error."""
        with pytest.raises(RuntimeError), database.session() as session:
            session.add(TableHeader(table_name="students", columns='["id"]'))
            session.flush()
            raise RuntimeError("boom")

        with database.session() as session:
            assert session.get(TableHeader, "students") is None
