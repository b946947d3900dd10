"""
DuckDB engine handle for ultralogi.

One Engine wraps one DuckDB connection. Access is serialised by a single
Section: only one statement or query runs at a time and contention blocks the
caller. duckdb.Error is converted to EngineError inside the section, so a
failing statement never poisons it. Calls on a closed engine raise
EngineError.

Query results are always pulled as Arrow record batches
(to_arrow_reader) and fully materialised before the section is released,
because a DuckDB result reader is tied to its connection.

Usage:
    engine = Engine()
    engine.execute("CREATE TABLE t (i INTEGER)")
    engine.execute("INSERT INTO t VALUES (1), (2)")   # -> 2
    table = engine.query_arrow("SELECT * FROM t")    # pyarrow.Table
    ipc = engine.query("SELECT * FROM t")            # Arrow IPC stream bytes
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import duckdb
import pandas as pd
import pyarrow as pa

from ultralogi.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ultralogi.constants import CREATE_TILE_TABLE_SQL, TILE_TABLE
from ultralogi.engine.section import Section
from ultralogi.errors import EngineError
from ultralogi.schema import TILE_SCHEMA
from ultralogi.storage.ipc import write_ipc_stream

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Engine:
    """
    Serialised access to one DuckDB connection.

    Example:
        >>> engine = Engine()
        >>> engine.execute("CREATE TABLE t (i INTEGER)")
        0
        >>> engine.execute("INSERT INTO t VALUES (1)")
        1
    """

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG):
        self.config = config
        self.section = Section("engine")
        try:
            self._conn = duckdb.connect(config.database)
        except duckdb.Error as e:
            raise EngineError(str(e)) from e
        self._apply_settings()

    def _apply_settings(self) -> None:
        for name, value in self.config.settings().items():
            try:
                self._conn.execute(f"SET {name} = {value}")
            except duckdb.Error as e:
                logger.warning("Could not apply engine setting %s=%s: %s", name, value, e)

    def close(self) -> None:
        """Close the DuckDB connection."""
        with self.section:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Boundary operations
    # -------------------------------------------------------------------------

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """
        Execute a statement (INSERT, UPDATE, DELETE, CREATE, ...).

        Returns:
            Rows affected; 0 for statements that do not report a count.

        Raises:
            EngineError: If DuckDB rejects the statement
        """
        with self.section:
            return self._execute_locked(sql, params)

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> bytes:
        """
        Run a query and return schema + batches as an Arrow IPC stream.

        An empty result still carries its schema (zero batches).
        """
        with self.section:
            reader = self._reader_locked(sql, params)
            try:
                return write_ipc_stream(reader.schema, reader)
            except (duckdb.Error, pa.ArrowException) as e:
                raise EngineError(str(e)) from e

    def query_arrow(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> pa.Table:
        """Run a query and materialise every batch into one pyarrow Table."""
        with self.section:
            return self._query_arrow_locked(sql, params)

    def query_rows(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[tuple]:
        """Run a query and return Python row tuples."""
        with self.section:
            try:
                return self._open().execute(sql, params or []).fetchall()
            except duckdb.Error as e:
                raise EngineError(str(e)) from e

    def explain(self, sql: str) -> str:
        """Return the EXPLAIN ANALYZE plan text for a query."""
        rows = self.query_rows(f"EXPLAIN ANALYZE {sql}")
        return "".join(f"{row[1]}\n" for row in rows if len(row) > 1)

    def storage_info(self, table: str = TILE_TABLE) -> Dict[str, Any]:
        """
        Report how a table's columns are stored.

        Returns:
            {"force_compression": str,
             "columns": [{"column": str, "compression": str, "segments": int}]}
        """
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Not a plain table name: {table!r}")

        with self.section:
            try:
                force = self._open().execute(
                    "SELECT current_setting('force_compression')"
                ).fetchone()[0]
            except duckdb.Error:
                force = "unknown"
            try:
                rows = self._open().execute(
                    "SELECT column_name, compression, COUNT(*) AS segment_count "
                    f"FROM pragma_storage_info('{table}') "
                    "GROUP BY column_name, compression "
                    "ORDER BY column_name, compression"
                ).fetchall()
            except duckdb.Error as e:
                raise EngineError(str(e)) from e

        return {
            "force_compression": str(force),
            "columns": [
                {"column": name, "compression": compression, "segments": int(count)}
                for name, compression, count in rows
            ],
        }

    def load_tiles(self, frame: pd.DataFrame) -> int:
        """
        Bulk-insert tiles from a pandas DataFrame.

        The frame must carry x, y, tile_type and elevation columns; they are
        cast to the tile schema before insert. Creates the tile table if it
        does not exist yet.

        Returns:
            Number of rows inserted
        """
        missing = [c for c in TILE_SCHEMA.fields if c not in frame.columns]
        if missing:
            raise ValueError(f"Tile frame is missing columns: {missing}")

        table = TILE_SCHEMA.cast(
            pa.Table.from_pandas(frame[list(TILE_SCHEMA.fields)], preserve_index=False)
        )

        with self.section:
            conn = self._open()
            try:
                conn.execute(CREATE_TILE_TABLE_SQL)
                conn.register("_ultralogi_tile_load", table)
                try:
                    conn.execute(
                        f"INSERT INTO {TILE_TABLE} "
                        "SELECT x, y, tile_type, elevation FROM _ultralogi_tile_load"
                    )
                finally:
                    conn.unregister("_ultralogi_tile_load")
            except duckdb.Error as e:
                raise EngineError(str(e)) from e

        logger.debug("Loaded %d tiles", table.num_rows)
        return table.num_rows

    @contextmanager
    def transaction(self) -> Iterator["LockedEngine"]:
        """
        Hold the engine section for a block run inside one transaction.

        The block commits on success and rolls back on any exception. Used by
        batch jobs (chunk generation, voxel world creation) that must not
        interleave with other statements.

        Example:
            >>> with engine.transaction() as tx:
            ...     tx.execute("DELETE FROM t")
            ...     tx.execute("INSERT INTO t VALUES (1)")
        """
        with self.section:
            with _Transaction(self._open()):
                yield LockedEngine(self)

    # -------------------------------------------------------------------------
    # Locked helpers (caller holds self.section)
    # -------------------------------------------------------------------------

    def _open(self) -> "duckdb.DuckDBPyConnection":
        if self._conn is None:
            raise EngineError("engine is closed")
        return self._conn

    def _execute_locked(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        try:
            result = self._open().execute(sql, params or [])
            description = result.description
            if description and len(description) == 1 and description[0][0] == "Count":
                row = result.fetchone()
                return int(row[0]) if row else 0
            return 0
        except duckdb.Error as e:
            raise EngineError(str(e)) from e

    def _reader_locked(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> pa.RecordBatchReader:
        try:
            return self._open().execute(sql, params or []).to_arrow_reader(
                self.config.batch_size
            )
        except duckdb.Error as e:
            raise EngineError(str(e)) from e

    def _query_arrow_locked(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> pa.Table:
        reader = self._reader_locked(sql, params)
        try:
            return reader.read_all()
        except (duckdb.Error, pa.ArrowException) as e:
            raise EngineError(str(e)) from e


class _Transaction:
    """BEGIN/COMMIT around a block, ROLLBACK on any failure."""

    def __init__(self, conn: "duckdb.DuckDBPyConnection"):
        self._conn = conn

    def __enter__(self) -> "duckdb.DuckDBPyConnection":
        try:
            self._conn.begin()
        except duckdb.Error as e:
            raise EngineError(str(e)) from e
        return self._conn

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        except duckdb.Error as e:
            raise EngineError(str(e)) from e
        return False


class LockedEngine:
    """
    Statement access for code that already holds the engine section.

    Only handed out by Engine.transaction(); never hold one past its block.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        return self._engine._execute_locked(sql, params)

    def query_arrow(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> pa.Table:
        return self._engine._query_arrow_locked(sql, params)
