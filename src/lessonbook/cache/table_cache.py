"""In-process, per-table TTL cache in front of whole-table reads."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Final

from lessonbook.config import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class _Miss(Enum):
    MISS = "MISS"

    def __repr__(self) -> str:
        return "MISS"


MISS: Final = _Miss.MISS
"""Returned by TableCache.get when a table has no fresh entry."""

Clock = Callable[[], float]


class TableCache:
    """Cache of raw table rows keyed by table name.

    Values and their freshness timestamps live in two maps. A lookup is a hit
    only when both hold an entry for the table and the timestamp is younger
    than the TTL. Invalidation removes both entries together and bumps the
    table's generation, so a read that started before the invalidation can
    no longer store its rows.

    Attributes:
        ttl_seconds: How long a stored table stays fresh.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            ttl_seconds: Freshness window for stored tables.
            clock: Monotonic time source in seconds. Tests inject a fake.
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._values: dict[str, tuple[Any, ...]] = {}
        self._stored_at: dict[str, float] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    def get(self, table: str) -> tuple[Any, ...] | _Miss:
        """Get the cached rows of a table, or MISS."""
        stored_at = self._stored_at.get(table)
        if stored_at is None or table not in self._values:
            return MISS
        if self._clock() - stored_at >= self.ttl_seconds:
            logger.debug("Cache entry for %s expired", table)
            return MISS
        return self._values[table]

    def generation(self, table: str) -> int:
        """Counter that changes every time the table is invalidated."""
        return self._epoch + self._generations.get(table, 0)

    def put(self, table: str, rows: tuple[Any, ...], generation: int | None = None) -> bool:
        """Store the rows of a table and stamp them as fresh.

        Args:
            table: Table name.
            rows: Raw rows read from the store.
            generation: Value of generation(table) taken before the read. When
                the table was invalidated since, the rows are not stored.

        Returns:
            Whether the rows were stored.
        """
        if generation is not None and generation != self.generation(table):
            logger.debug("Discarding rows for %s read before an invalidation", table)
            return False
        self._values[table] = rows
        self._stored_at[table] = self._clock()
        return True

    def invalidate(self, table: str) -> None:
        """Drop a table's rows and freshness timestamp."""
        self._values.pop(table, None)
        self._stored_at.pop(table, None)
        self._generations[table] = self._generations.get(table, 0) + 1
        logger.debug("Invalidated cache for %s", table)

    def invalidate_all(self) -> None:
        """Drop every table."""
        self._values.clear()
        self._stored_at.clear()
        self._epoch += 1

    # --- Inspection ---

    def contains_value(self, table: str) -> bool:
        """Whether the value map holds an entry for the table."""
        return table in self._values

    def contains_timestamp(self, table: str) -> bool:
        """Whether the timestamp map holds an entry for the table."""
        return table in self._stored_at
