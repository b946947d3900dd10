"""
Spatial Chunk Store: precomputed per-chunk GPU buffers, persisted in the engine.

================================================================================
DATA FLOW
================================================================================

GENERATE (one blocking batch pass, generate_chunks)
---------------------------------------------------
    build_chunk_plan(grid, chunk)  ->  for each (cy, cx):
        scan tiles in [x_min, x_max) x [y_min, y_max)  ORDER BY y, x
        transform + pack as GPU layout
        INSERT (chunk_x, chunk_y, gpu_data) INTO tile_chunks

    The chunk table is dropped and recreated first, and the whole pass runs
    in one transaction: a failed generation leaves the previous chunks intact.
    Blobs are never patched; changing a chunk means regenerating all of them.

READ (query_combined)
---------------------
    SELECT ... FROM tile_chunks ORDER BY chunk_y, chunk_x
        -> slice each blob into (count, positions, colors)
        -> [sum(count)][positions of every chunk][colors of every chunk]

    A blob shorter than its header implies is logged and skipped; the rest
    are still combined.

Chunks live in the engine's own storage and are not tied to the Result Cache:
writes to the tile table leave existing chunks untouched.

================================================================================
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pyarrow as pa

from ultralogi.config import DEFAULT_RENDER_CONFIG, RenderConfig
from ultralogi.constants import CHUNK_SCAN_SQL, CHUNK_TABLE, CREATE_CHUNK_TABLE_SQL
from ultralogi.engine import Engine, Section
from ultralogi.errors import EngineError, MalformedBuffer
from ultralogi.execution.planner import build_chunk_plan
from ultralogi.execution.transform import pack_gpu_buffer
from ultralogi.storage.packer import GPU_LAYOUT

logger = logging.getLogger(__name__)

READ_CHUNKS_SQL = (
    f"SELECT chunk_x, chunk_y, gpu_data FROM {CHUNK_TABLE} ORDER BY chunk_y, chunk_x"
)

INSERT_CHUNK_SQL = (
    f"INSERT INTO {CHUNK_TABLE} (chunk_x, chunk_y, gpu_data) VALUES (?, ?, ?)"
)


@dataclass(frozen=True)
class CombineResult:
    """A combined GPU buffer and how it was assembled."""

    buffer: bytes
    count: int
    chunks: int
    skipped: List[Tuple[int, int]]


@dataclass(frozen=True)
class GenerationInfo:
    """Parameters of the last successful generate_chunks() call."""

    grid_size: int
    chunk_size: int
    render: RenderConfig
    chunks: int
    rows: int


class ChunkStore:
    """
    Durable per-chunk GPU buffers over one Engine.

    Example:
        >>> store = ChunkStore(engine)
        >>> store.generate_chunks(grid_size=256, chunk_size=64)
        >>> count, positions, colors = GPU_LAYOUT.decode(store.query_combined())
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.section = Section("chunk_store")
        self._last: Optional[GenerationInfo] = None
        self.engine.execute(CREATE_CHUNK_TABLE_SQL)

    @property
    def last_generation(self) -> Optional[GenerationInfo]:
        with self.section:
            return self._last

    def generate_chunks(
        self,
        grid_size: int,
        chunk_size: int,
        render: RenderConfig = DEFAULT_RENDER_CONFIG,
    ) -> GenerationInfo:
        """
        Replace every persisted chunk with a fresh generation.

        Args:
            grid_size: Tiles per side of the square grid
            chunk_size: Tiles per side of one chunk
            render: Spacing and color scale for the transform

        Returns:
            GenerationInfo for the new chunk set

        Raises:
            ValueError: Bad grid/chunk sizes (nothing is touched)
            EngineError: A scan, pack or insert failed (previous chunks kept)
        """
        plan = build_chunk_plan(grid_size, chunk_size)

        rows = 0
        with self.engine.transaction() as tx:
            tx.execute(f"DROP TABLE IF EXISTS {CHUNK_TABLE}")
            tx.execute(CREATE_CHUNK_TABLE_SQL)
            for item in plan:
                table = tx.query_arrow(CHUNK_SCAN_SQL, item.params)
                try:
                    blob = pack_gpu_buffer(table, render)
                except (ValueError, TypeError, pa.ArrowException) as e:
                    raise EngineError(
                        f"cannot pack chunk ({item.chunk_x}, {item.chunk_y}): {e}"
                    ) from e
                tx.execute(INSERT_CHUNK_SQL, [item.chunk_x, item.chunk_y, blob])
                rows += table.num_rows

        info = GenerationInfo(
            grid_size=grid_size,
            chunk_size=chunk_size,
            render=render,
            chunks=len(plan),
            rows=rows,
        )
        with self.section:
            self._last = info

        logger.debug(
            "Generated %d chunks (%d tiles) for grid %d / chunk %d",
            len(plan),
            rows,
            grid_size,
            chunk_size,
        )
        return info

    def read_blobs(self) -> List[Tuple[int, int, bytes]]:
        """Every persisted (chunk_x, chunk_y, blob), ordered by (chunk_y, chunk_x)."""
        return [
            (int(cx), int(cy), bytes(blob))
            for cx, cy, blob in self.engine.query_rows(READ_CHUNKS_SQL)
        ]

    def combine(self, blobs: List[Tuple[int, int, bytes]]) -> CombineResult:
        """
        Combine chunk blobs, in the given order, into one GPU buffer.

        Malformed blobs are skipped and reported in CombineResult.skipped.
        """
        parts = []
        skipped = []
        for cx, cy, blob in blobs:
            try:
                parts.append(GPU_LAYOUT.slices(blob))
            except MalformedBuffer as e:
                logger.warning("Skipping malformed chunk (%d, %d): %s", cx, cy, e)
                skipped.append((cx, cy))

        buffer = GPU_LAYOUT.concat(parts)
        return CombineResult(
            buffer=buffer,
            count=sum(p[0] for p in parts),
            chunks=len(parts),
            skipped=skipped,
        )

    def query_combined(self) -> bytes:
        """All chunks as one GPU buffer, ordered by (chunk_y, chunk_x)."""
        return self.combine(self.read_blobs()).buffer

    def chunk_count(self) -> int:
        """Number of persisted chunk rows."""
        rows = self.engine.query_rows(f"SELECT COUNT(*) FROM {CHUNK_TABLE}")
        return int(rows[0][0])

    def chunk_counts(self) -> Dict[Tuple[int, int], int]:
        """Declared row count of every readable chunk, keyed by (chunk_x, chunk_y)."""
        counts = {}
        for cx, cy, blob in self.read_blobs():
            try:
                counts[(cx, cy)] = GPU_LAYOUT.read_count(blob)
            except MalformedBuffer:
                continue
        return counts
