"""
Result Cache: exact query text -> materialised polars DataFrame.

1. Keys:
   - The literal SQL text. No normalisation: "SELECT 1" and "select 1" are
     different entries.

2. Hit / miss (get_or_compute):
   - Hit: return a clone of the stored frame. polars clones share column
     buffers, so this is O(columns), and the engine is never touched.
   - Miss: run the query through the engine, stack every batch into one
     frame, store it, return a clone.

3. Invalidation:
   - invalidate_all() clears every entry and bumps the version by one.
   - execute_with_invalidation() runs a statement, then invalidates if the
     statement's leading keyword is a write keyword. Whole-cache, never
     per-table.

LOCKING
=======
The cache owns its own Section, independent of the engine's. The two are
never held together: engine work happens with only the engine section held,
and cache bookkeeping happens afterwards with only the cache section held.

A miss that raced with an invalidation is returned to its caller but not
stored, so the cache is always empty right after invalidate_all().

Usage:
    cache = ResultCache(engine)
    frame = cache.get_or_compute("SELECT x, y FROM tiles")
    cache.execute_with_invalidation("INSERT INTO tiles VALUES (1, 2, 3, 4.0)")
    cache.stats().entries  # 0
"""

import logging
from dataclasses import dataclass, field
from typing import Dict

import polars as pl

from ultralogi.analysis.statements import is_write_statement
from ultralogi.engine import Engine, Section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of the Result Cache."""

    version: int
    entries: int
    total_rows: int
    queries: Dict[str, int] = field(default_factory=dict)  # query text -> rows

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "entries": self.entries,
            "totalRows": self.total_rows,
            "queries": dict(self.queries),
        }


class ResultCache:
    """
    Exact-text query cache over one Engine.

    Example:
        >>> cache = ResultCache(engine)
        >>> a = cache.get_or_compute("SELECT 42 AS answer")  # miss
        >>> b = cache.get_or_compute("SELECT 42 AS answer")  # hit
        >>> a.equals(b)
        True
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.section = Section("result_cache")
        self._entries: Dict[str, pl.DataFrame] = {}
        self._version = 0

    @property
    def version(self) -> int:
        """Invalidation counter; only ever increases."""
        with self.section:
            return self._version

    def get_or_compute(self, query_text: str) -> pl.DataFrame:
        """
        Return the cached frame for query_text, running it on a miss.

        Raises:
            EngineError: If the query fails (nothing is cached)
            LockError: If either section is poisoned
        """
        with self.section:
            cached = self._entries.get(query_text)
            version = self._version
        if cached is not None:
            logger.debug("Result cache hit (%d rows): %s", cached.height, query_text)
            return cached.clone()

        table = self.engine.query_arrow(query_text)
        frame = pl.from_arrow(table)

        with self.section:
            if self._version == version:
                self._entries[query_text] = frame
            else:
                logger.debug(
                    "Result cache invalidated during miss, not storing: %s", query_text
                )

        logger.debug("Result cache miss (%d rows): %s", frame.height, query_text)
        return frame.clone()

    def invalidate_all(self) -> int:
        """
        Drop every entry and advance the version by exactly one.

        Returns:
            The new version
        """
        with self.section:
            dropped = len(self._entries)
            self._entries.clear()
            self._version += 1
            version = self._version
        logger.debug("Result cache invalidated (v%d, %d entries dropped)", version, dropped)
        return version

    def execute_with_invalidation(self, statement: str) -> int:
        """
        Execute a statement, then clear the cache if it was a write.

        The engine section is released before the cache section is taken.
        A failing statement raises EngineError and leaves the cache alone.

        Returns:
            Rows affected
        """
        rows = self.engine.execute(statement)
        if is_write_statement(statement):
            self.invalidate_all()
        return rows

    def stats(self) -> CacheStats:
        with self.section:
            queries = {sql: frame.height for sql, frame in self._entries.items()}
            version = self._version
        return CacheStats(
            version=version,
            entries=len(queries),
            total_rows=sum(queries.values()),
            queries=queries,
        )

    def __contains__(self, query_text: str) -> bool:
        with self.section:
            return query_text in self._entries

    def __len__(self) -> int:
        with self.section:
            return len(self._entries)
