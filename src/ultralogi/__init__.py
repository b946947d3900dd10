"""
ultralogi: cached, GPU-ready tile buffers over DuckDB.

Turns tile and voxel tables into packed byte buffers a renderer can upload
without parsing, through three cache tiers:

- Result Cache: exact query text -> polars DataFrame, cleared on writes
- Scalar caches: one precomputed GPU buffer and one raw column buffer
- Chunk Store: per-chunk GPU buffers persisted in DuckDB, combined on read

Usage:
    >>> from ultralogi import Ultralogi
    >>> ul = Ultralogi()
    >>> ul.load_tiles(frame)
    >>> ul.precompute_gpu_data(spacing=1.0, color_scale=1.0)
    >>> buffer = ul.fetch_precomputed()
"""

from ultralogi.api import Tier, Ultralogi
from ultralogi.config import (
    DEFAULT_ENGINE_CONFIG,
    DEFAULT_RENDER_CONFIG,
    EngineConfig,
    RenderConfig,
)
from ultralogi.errors import (
    EngineError,
    LockError,
    MalformedBuffer,
    NotInitialized,
    UltralogiError,
    Unsupported,
)
from ultralogi.storage.packer import GPU_LAYOUT, RAW_LAYOUT, VOXEL_LAYOUT

__version__ = "0.1.0"

__all__ = [
    "Ultralogi",
    "Tier",
    "EngineConfig",
    "RenderConfig",
    "DEFAULT_ENGINE_CONFIG",
    "DEFAULT_RENDER_CONFIG",
    "UltralogiError",
    "EngineError",
    "LockError",
    "NotInitialized",
    "MalformedBuffer",
    "Unsupported",
    "GPU_LAYOUT",
    "RAW_LAYOUT",
    "VOXEL_LAYOUT",
]
