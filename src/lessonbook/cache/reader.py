"""Read-through access to store tables via the TableCache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from lessonbook.cache.table_cache import MISS, TableCache

if TYPE_CHECKING:
    from lessonbook.data_store import DataStore, RowDecoder

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _raw_row(row: tuple[str, ...]) -> tuple[str, ...]:
    return row


class TableReader:
    """Loads tables through the cache, falling back to the store on a miss.

    Raw rows are cached, not decoded entities. Every load decodes afresh.
    Rows read while a write invalidated the table are returned to the caller
    but not cached.
    """

    def __init__(self, store: DataStore, cache: TableCache) -> None:
        self._store = store
        self._cache = cache

    @property
    def cache(self) -> TableCache:
        return self._cache

    async def load(self, table: str, decoder: RowDecoder[T]) -> list[T]:
        """Read a table, decode every row and drop rows decoded to None.

        Args:
            table: Table name
            decoder: Callable mapping a row tuple to an entity

        Raises:
            StoreError: If the store read fails on a miss
        """
        rows = self._cache.get(table)
        if rows is MISS:
            logger.debug("Cache miss for %s, reading from store", table)
            generation = self._cache.generation(table)
            rows = tuple(await self._store.list_all(table, _raw_row))
            self._cache.put(table, rows, generation=generation)

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
