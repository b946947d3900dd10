"""
Voxel chunks: a 32 x 64 x 32 block column per (chunk_x, chunk_z).

Coordinates are Y-up:

    x  0..31  right
    y  0..63  up
    z  0..31  depth

Sample terrain is layered by height:

    y >  32   air     (0)
    y == 32   grass   (1)
    29..31    dirt    (2)
    y <  29   stone   (3)

Reads return only non-air blocks, ordered by (z, y, x), either as an Arrow
IPC stream or packed in the voxel layout.
"""

import logging
import time
from typing import Any, Dict

from ultralogi.constants import (
    VOXEL_CHUNK_DEPTH,
    VOXEL_CHUNK_HEIGHT,
    VOXEL_CHUNK_WIDTH,
    VOXEL_SURFACE_Y,
    VOXEL_TABLE,
)
from ultralogi.engine import Engine
from ultralogi.schema import VOXEL_SCHEMA
from ultralogi.storage.packer import VOXEL_LAYOUT

logger = logging.getLogger(__name__)

VOXELS_PER_CHUNK = VOXEL_CHUNK_WIDTH * VOXEL_CHUNK_HEIGHT * VOXEL_CHUNK_DEPTH
_LAYER = VOXEL_CHUNK_WIDTH * VOXEL_CHUNK_DEPTH

CREATE_VOXEL_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {VOXEL_TABLE} (
    chunk_x INTEGER NOT NULL,
    chunk_z INTEGER NOT NULL,
    x UTINYINT NOT NULL,
    y UTINYINT NOT NULL,
    z UTINYINT NOT NULL,
    block_type UTINYINT NOT NULL
)
"""

# i walks x fastest, then z, then y
FILL_VOXEL_CHUNK_SQL = f"""
INSERT INTO {VOXEL_TABLE}
SELECT
    CAST(? AS INTEGER) AS chunk_x,
    CAST(? AS INTEGER) AS chunk_z,
    CAST(i % {VOXEL_CHUNK_WIDTH} AS UTINYINT) AS x,
    CAST(i // {_LAYER} AS UTINYINT) AS y,
    CAST((i // {VOXEL_CHUNK_WIDTH}) % {VOXEL_CHUNK_DEPTH} AS UTINYINT) AS z,
    CAST(
        CASE
            WHEN i // {_LAYER} > {VOXEL_SURFACE_Y} THEN 0
            WHEN i // {_LAYER} = {VOXEL_SURFACE_Y} THEN 1
            WHEN i // {_LAYER} > {VOXEL_SURFACE_Y - 4} THEN 2
            ELSE 3
        END AS UTINYINT
    ) AS block_type
FROM range(0, {VOXELS_PER_CHUNK}) t(i)
"""

SOLID_VOXELS_SQL = f"""
SELECT x, y, z, block_type FROM {VOXEL_TABLE}
WHERE chunk_x = ? AND chunk_z = ? AND block_type > 0
ORDER BY z, y, x
"""


class VoxelWorld:
    """
    Voxel chunk table over one Engine.

    Example:
        >>> world = VoxelWorld(engine)
        >>> world.create_voxel_world(0, 0)["voxels"]
        65536
        >>> count, x, y, z, block = VOXEL_LAYOUT.decode(world.query_voxel_chunk_raw(0, 0))
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_voxel_world(self, chunk_x: int, chunk_z: int) -> Dict[str, Any]:
        """
        (Re)populate one voxel chunk with sample terrain.

        Returns:
            {"chunk_x", "chunk_z", "voxels", "time_ms"}
        """
        params = [int(chunk_x), int(chunk_z)]
        start = time.perf_counter()
        with self.engine.transaction() as tx:
            tx.execute(CREATE_VOXEL_TABLE_SQL)
            tx.execute(
                f"DELETE FROM {VOXEL_TABLE} WHERE chunk_x = ? AND chunk_z = ?", params
            )
            tx.execute(FILL_VOXEL_CHUNK_SQL, params)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        logger.debug("Voxel chunk (%d, %d) filled in %.1f ms", chunk_x, chunk_z, elapsed_ms)
        return {
            "chunk_x": int(chunk_x),
            "chunk_z": int(chunk_z),
            "voxels": VOXELS_PER_CHUNK,
            "time_ms": round(elapsed_ms, 1),
        }

    def query_voxel_chunk(self, chunk_x: int, chunk_z: int) -> bytes:
        """Non-air voxels of one chunk as an Arrow IPC stream."""
        return self.engine.query(SOLID_VOXELS_SQL, [int(chunk_x), int(chunk_z)])

    def query_voxel_chunk_raw(self, chunk_x: int, chunk_z: int) -> bytes:
        """Non-air voxels of one chunk packed as [count][x][y][z][type] (all u8)."""
        table = VOXEL_SCHEMA.cast(
            self.engine.query_arrow(SOLID_VOXELS_SQL, [int(chunk_x), int(chunk_z)])
        )
        columns = [table.column(name).to_numpy() for name in VOXEL_SCHEMA.fields]
        return VOXEL_LAYOUT.encode(table.num_rows, *columns)
