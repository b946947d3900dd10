"""
Shared constants for ultralogi.

Table names, canonical SQL and wire-format widths live here so that the
engine, the cache tiers and the packer all agree on them.
"""

# =============================================================================
# TABLES
# =============================================================================

TILE_TABLE = "tiles"
CHUNK_TABLE = "tile_chunks"
VOXEL_TABLE = "voxels"

# =============================================================================
# CANONICAL SQL
# =============================================================================
# Every scan that feeds a packed buffer orders rows by (y, x). The engine runs
# with preserve_insertion_order = false, so without an explicit clause row
# order is not stable between calls.

TILE_SCAN_SQL = (
    f"SELECT x, y, tile_type, elevation FROM {TILE_TABLE} ORDER BY y, x"
)

CHUNK_SCAN_SQL = (
    f"SELECT x, y, tile_type, elevation FROM {TILE_TABLE} "
    "WHERE x >= ? AND x < ? AND y >= ? AND y < ? "
    "ORDER BY y, x"
)

CREATE_TILE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TILE_TABLE} (
    x INTEGER NOT NULL,
    y INTEGER NOT NULL,
    tile_type INTEGER NOT NULL,
    elevation REAL NOT NULL
)
"""

CREATE_CHUNK_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {CHUNK_TABLE} (
    chunk_x INTEGER NOT NULL,
    chunk_y INTEGER NOT NULL,
    gpu_data BLOB NOT NULL
)
"""

# =============================================================================
# WIRE FORMAT
# =============================================================================

HEADER_BYTES = 4  # count:u32 LE

# =============================================================================
# VOXELS
# =============================================================================

VOXEL_CHUNK_WIDTH = 32  # x
VOXEL_CHUNK_HEIGHT = 64  # y
VOXEL_CHUNK_DEPTH = 32  # z
VOXEL_SURFACE_Y = 32

# =============================================================================
# ENGINE
# =============================================================================

DEFAULT_BATCH_SIZE = 1_000_000
