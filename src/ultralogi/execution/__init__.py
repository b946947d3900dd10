"""
Chunk planning and tile transforms for ultralogi.
"""

from ultralogi.execution.planner import ChunkWorkItem, build_chunk_plan
from ultralogi.execution.transform import (
    TILE_PALETTE,
    pack_gpu_buffer,
    pack_raw_columns,
    tile_color,
    tile_colors,
    tile_positions,
)

__all__ = [
    "ChunkWorkItem",
    "build_chunk_plan",
    # transform.py exports
    "TILE_PALETTE",
    "tile_color",
    "tile_colors",
    "tile_positions",
    "pack_gpu_buffer",
    "pack_raw_columns",
]
