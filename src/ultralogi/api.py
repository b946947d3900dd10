"""
Public entry points for ultralogi.

One Ultralogi object owns one Engine and one instance of every cache tier.
Nothing is process-global: two Ultralogi objects share no state.

    caller
      │
      ├── execute / query                    raw, no caching
      ├── execute_with_cache                 execute + Result Cache invalidation
      ├── query_cached / query_cached_ipc    Result Cache
      ├── precompute_gpu_data / fetch_precomputed       GPU scalar cache
      ├── cache_raw_columns / fetch_cached_raw          raw scalar cache
      └── generate_chunks / query_combined_chunks       Chunk Store (in engine)

Usage:
    with Ultralogi() as ul:
        ul.load_tiles(frame)
        ul.precompute_gpu_data(spacing=1.0, color_scale=1.0)
        gpu = ul.fetch_precomputed()
"""

import logging
from enum import Enum
from typing import Any, Dict

import pandas as pd

from ultralogi.cache.chunks import ChunkStore, GenerationInfo
from ultralogi.cache.result import ResultCache
from ultralogi.cache.scalar import GpuBufferCache, RawColumnCache, export_raw_columns
from ultralogi.config import DEFAULT_ENGINE_CONFIG, EngineConfig, RenderConfig
from ultralogi.constants import TILE_SCAN_SQL, TILE_TABLE
from ultralogi.engine import Engine
from ultralogi.errors import Unsupported
from ultralogi.execution.transform import pack_gpu_buffer
from ultralogi.profiling import (
    benchmark_chunked_query,
    benchmark_precomputed_query,
    benchmark_result_cache,
)
from ultralogi.storage.ipc import table_to_ipc
from ultralogi.world.voxels import VoxelWorld

logger = logging.getLogger(__name__)


class Tier(Enum):
    """Cache tiers."""

    RESULT = "result"
    GPU = "gpu"
    RAW = "raw"
    CHUNKS = "chunks"


class Ultralogi:
    """
    Engine plus every cache tier.

    Example:
        >>> ul = Ultralogi()
        >>> ul.execute_with_cache("CREATE TABLE tiles (x INTEGER, y INTEGER, tile_type INTEGER, elevation REAL)")
        0
        >>> ul.fetch_precomputed()
        Traceback (most recent call last):
        ...
        ultralogi.errors.NotInitialized: gpu cache not initialized. Call precompute_gpu_data() first.
    """

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG):
        self.engine = Engine(config)
        self.result_cache = ResultCache(self.engine)
        self.gpu_cache = GpuBufferCache(self.engine)
        self.raw_cache = RawColumnCache(self.engine)
        self.chunks = ChunkStore(self.engine)
        self.voxels = VoxelWorld(self.engine)

    def close(self) -> None:
        self.engine.close()

    def __enter__(self) -> "Ultralogi":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------

    def execute(self, sql: str) -> int:
        """Execute a statement without touching any cache."""
        return self.engine.execute(sql)

    def query(self, sql: str) -> bytes:
        """Run a query; Arrow IPC stream bytes."""
        return self.engine.query(sql)

    def explain(self, sql: str) -> str:
        return self.engine.explain(sql)

    def storage_info(self, table: str = TILE_TABLE) -> Dict[str, Any]:
        return self.engine.storage_info(table)

    def load_tiles(self, frame: pd.DataFrame) -> int:
        """Bulk-insert tiles, then invalidate the Result Cache."""
        rows = self.engine.load_tiles(frame)
        self.result_cache.invalidate_all()
        return rows

    # -------------------------------------------------------------------------
    # Result Cache
    # -------------------------------------------------------------------------

    def execute_with_cache(self, sql: str) -> int:
        """Execute a statement; clear the Result Cache if it was a write."""
        return self.result_cache.execute_with_invalidation(sql)

    def query_cached(self, spacing: float = 1.0, color_scale: float = 1.0) -> bytes:
        """The tile table, served through the Result Cache, as a GPU buffer."""
        frame = self.result_cache.get_or_compute(TILE_SCAN_SQL)
        return pack_gpu_buffer(frame, RenderConfig(spacing, color_scale))

    def query_cached_ipc(self) -> bytes:
        """The tile table, served through the Result Cache, as Arrow IPC."""
        return table_to_ipc(self.result_cache.get_or_compute(TILE_SCAN_SQL))

    def cache_stats(self) -> Dict[str, Any]:
        """{"version", "entries", "totalRows", "queries"}"""
        return self.result_cache.stats().to_dict()

    def clear_cache(self) -> None:
        self.result_cache.invalidate_all()

    # -------------------------------------------------------------------------
    # Scalar caches
    # -------------------------------------------------------------------------

    def precompute_gpu_data(self, spacing: float = 1.0, color_scale: float = 1.0) -> float:
        """Rebuild the GPU buffer cache; elapsed milliseconds."""
        return self.gpu_cache.precompute(RenderConfig(spacing, color_scale))

    def fetch_precomputed(self) -> bytes:
        return self.gpu_cache.fetch()

    def export_raw_columns(self) -> bytes:
        """Scan and pack raw tile columns, bypassing the raw cache."""
        return export_raw_columns(self.engine)

    def cache_raw_columns(self) -> float:
        """Rebuild the raw column cache; elapsed milliseconds."""
        return self.raw_cache.precompute()

    def fetch_cached_raw(self) -> bytes:
        return self.raw_cache.fetch()

    def refresh(self, tier: Tier) -> float:
        """
        Rebuild a single-slot tier with its default parameters.

        Raises:
            Unsupported: For tiers without a parameterless rebuild
        """
        if tier is Tier.GPU:
            return self.gpu_cache.precompute()
        elif tier is Tier.RAW:
            return self.raw_cache.precompute()
        raise Unsupported(f"{tier.value} tier cannot be refreshed without parameters")

    # -------------------------------------------------------------------------
    # Chunk Store
    # -------------------------------------------------------------------------

    def generate_chunks(
        self,
        grid_size: int,
        chunk_size: int,
        spacing: float = 1.0,
        color_scale: float = 1.0,
    ) -> GenerationInfo:
        return self.chunks.generate_chunks(
            grid_size, chunk_size, RenderConfig(spacing, color_scale)
        )

    def query_combined_chunks(self) -> bytes:
        return self.chunks.query_combined()

    def chunk_count(self) -> int:
        return self.chunks.chunk_count()

    # -------------------------------------------------------------------------
    # Voxels
    # -------------------------------------------------------------------------

    def create_voxel_world(self, chunk_x: int, chunk_z: int) -> Dict[str, Any]:
        """Fill one voxel chunk; invalidates the Result Cache like any write."""
        info = self.voxels.create_voxel_world(chunk_x, chunk_z)
        self.result_cache.invalidate_all()
        return info

    def query_voxel_chunk(self, chunk_x: int, chunk_z: int) -> bytes:
        return self.voxels.query_voxel_chunk(chunk_x, chunk_z)

    def query_voxel_chunk_raw(self, chunk_x: int, chunk_z: int) -> bytes:
        return self.voxels.query_voxel_chunk_raw(chunk_x, chunk_z)

    # -------------------------------------------------------------------------
    # Profiling
    # -------------------------------------------------------------------------

    def benchmark_precomputed_query(self) -> Dict[str, Any]:
        return benchmark_precomputed_query(self.gpu_cache)

    def benchmark_result_cache(self) -> Dict[str, Any]:
        return benchmark_result_cache(self.result_cache)

    def benchmark_chunked_query(self) -> Dict[str, Any]:
        return benchmark_chunked_query(self.chunks)
