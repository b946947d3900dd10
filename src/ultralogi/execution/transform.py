"""
Tile row transforms.

Turns tile columns (x, y, tile_type, elevation) into the two packed layouts
the renderer consumes:

    GPU buffer  one vec4 position and one vec4 color per tile
                position = (x * spacing, y * spacing, elevation, 1.0)
                color    = (r, g, b) * color_scale, alpha 1.0
    Raw columns the four columns copied untouched (structure of arrays)

All arithmetic is float32, so a buffer built here is bit-identical to one
built by a renderer doing the same multiply in f32. Row order is whatever
order the input table has; callers scan with ORDER BY y, x.

TILE PALETTE
============

    code  name     r     g     b
    0     water    0.2   0.5   0.8
    1     grass    0.3   0.7   0.3
    2     rock     0.6   0.6   0.5
    3     snow     0.9   0.9   0.95
    4     sand     0.8   0.7   0.4
    5     forest   0.1   0.4   0.1
    *     unknown  0.5   0.5   0.5
"""

from typing import Tuple, Union

import numpy as np
import polars as pl
import pyarrow as pa

from ultralogi.config import DEFAULT_RENDER_CONFIG, RenderConfig
from ultralogi.storage.packer import GPU_LAYOUT, RAW_LAYOUT

TableLike = Union[pa.Table, pl.DataFrame]

TILE_PALETTE = np.array(
    [
        [0.2, 0.5, 0.8],  # water
        [0.3, 0.7, 0.3],  # grass
        [0.6, 0.6, 0.5],  # rock
        [0.9, 0.9, 0.95],  # snow
        [0.8, 0.7, 0.4],  # sand
        [0.1, 0.4, 0.1],  # forest
        [0.5, 0.5, 0.5],  # unknown
    ],
    dtype=np.float32,
)

UNKNOWN_TILE = len(TILE_PALETTE) - 1


def tile_color(tile_type: int, color_scale: float = 1.0) -> Tuple[float, float, float]:
    """
    RGB for one tile type code, scaled.

    Codes outside 0-5 map to (0.5, 0.5, 0.5) * color_scale.

    Example:
        >>> tile_color(1)
        (0.30000001192092896, 0.699999988079071, 0.30000001192092896)
    """
    index = tile_type if 0 <= tile_type < UNKNOWN_TILE else UNKNOWN_TILE
    rgb = TILE_PALETTE[index] * np.float32(color_scale)
    return float(rgb[0]), float(rgb[1]), float(rgb[2])


def tile_colors(tile_types: np.ndarray, color_scale: float = 1.0) -> np.ndarray:
    """Vectorised tile_color: (n,) codes -> (n, 4) float32 RGBA, alpha 1.0."""
    codes = np.asarray(tile_types)
    index = np.where((codes >= 0) & (codes < UNKNOWN_TILE), codes, UNKNOWN_TILE)
    colors = np.ones((len(codes), 4), dtype=np.float32)
    colors[:, :3] = TILE_PALETTE[index] * np.float32(color_scale)
    return colors


def tile_positions(
    x: np.ndarray, y: np.ndarray, elevation: np.ndarray, spacing: float = 1.0
) -> np.ndarray:
    """(n,) columns -> (n, 4) float32 positions (x*s, y*s, elevation, 1.0)."""
    spacing = np.float32(spacing)
    positions = np.ones((len(x), 4), dtype=np.float32)
    positions[:, 0] = np.asarray(x).astype(np.float32) * spacing
    positions[:, 1] = np.asarray(y).astype(np.float32) * spacing
    positions[:, 2] = np.asarray(elevation, dtype=np.float32)
    return positions


def tile_columns(table: TableLike) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Pull x, y, tile_type, elevation out of a pyarrow Table or polars DataFrame."""

    def get(name: str) -> np.ndarray:
        if isinstance(table, pl.DataFrame):
            return table.get_column(name).to_numpy()
        return table.column(name).to_numpy()

    return (
        get("x").astype(np.int32, copy=False),
        get("y").astype(np.int32, copy=False),
        get("tile_type").astype(np.int32, copy=False),
        get("elevation").astype(np.float32, copy=False),
    )


def pack_gpu_buffer(
    table: TableLike, render: RenderConfig = DEFAULT_RENDER_CONFIG
) -> bytes:
    """Transform every tile row and pack a GPU buffer."""
    x, y, tile_type, elevation = tile_columns(table)
    positions = tile_positions(x, y, elevation, render.tile_spacing)
    colors = tile_colors(tile_type, render.color_scale)
    return GPU_LAYOUT.encode(len(x), positions, colors)


def pack_raw_columns(table: TableLike) -> bytes:
    """Copy the four tile columns, untransformed, into a raw column buffer."""
    x, y, tile_type, elevation = tile_columns(table)
    return RAW_LAYOUT.encode(len(x), x, y, tile_type, elevation)
