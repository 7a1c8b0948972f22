"""SQLAlchemy models for the Data Store.

Tables are stored the way a spreadsheet holds them: one header of column
names and an ordered list of rows, each row an ordered list of text cells.
"""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TableHeader(Base):
    """Header row of a logical table."""

    __tablename__ = "table_headers"

    table_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    columns: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list

    def __repr__(self) -> str:
        return f"<TableHeader(table_name={self.table_name!r})>"


class TableRow(Base):
    """One data row of a logical table.

    ``position`` preserves append order; ``row_id`` mirrors the first cell.
    """

    __tablename__ = "table_rows"

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    row_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    cells: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list

    def __repr__(self) -> str:
        return f"<TableRow(table_name={self.table_name!r}, row_id={self.row_id!r})>"
