"""
Cache tiers for ultralogi.

- Result: exact query text -> polars DataFrame, cleared on writes
- Scalar: single-slot precomputed GPU and raw column buffers
- Chunks: durable per-chunk GPU buffers combined on read
"""

from .chunks import ChunkStore, CombineResult, GenerationInfo
from .result import CacheStats, ResultCache
from .scalar import GpuBufferCache, RawColumnCache, ScalarCache, export_raw_columns

__all__ = [
    "ResultCache",
    "CacheStats",
    "ScalarCache",
    "GpuBufferCache",
    "RawColumnCache",
    "export_raw_columns",
    "ChunkStore",
    "CombineResult",
    "GenerationInfo",
]
