"""
Schema system for ultralogi.

Provides column types and the declared schemas of the tile and voxel tables.
"""

from ultralogi.constants import TILE_TABLE, VOXEL_TABLE

from .types import (
    BaseType,
    Int,
    UInt8,
    Float,
    TableSchema,
)

# Import types module for Types.X syntax
from . import types as Types

TILE_SCHEMA = TableSchema(
    TILE_TABLE,
    {
        "x": Int(32),
        "y": Int(32),
        "tile_type": Int(32),
        "elevation": Float(32),
    },
)

VOXEL_SCHEMA = TableSchema(
    VOXEL_TABLE,
    {
        "x": UInt8(),
        "y": UInt8(),
        "z": UInt8(),
        "block_type": UInt8(),
    },
)

__all__ = [
    "Types",
    "BaseType",
    "Int",
    "UInt8",
    "Float",
    "TableSchema",
    "TILE_SCHEMA",
    "VOXEL_SCHEMA",
]
