"""Cache - Time-bounded, process-local copies of store tables."""

from lessonbook.cache.reader import TableReader
from lessonbook.cache.table_cache import MISS, TableCache

__all__ = [
    "MISS",
    "TableCache",
    "TableReader",
]
