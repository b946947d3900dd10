"""
Tests for ultralogi.cache.scalar module.

Covers:
- NotInitialized before the first precompute
- GPU and raw buffers built from the canonical scan
- Wholesale replacement on re-precompute
- fetch() never touching the engine
"""

import numpy as np
import pytest

from ultralogi.cache.scalar import (
    GpuBufferCache,
    RawColumnCache,
    ScalarCache,
    export_raw_columns,
)
from ultralogi.config import RenderConfig
from ultralogi.errors import NotInitialized, Unsupported
from ultralogi.storage.packer import GPU_LAYOUT, RAW_LAYOUT


class TestGpuBufferCache:
    """Test GpuBufferCache."""

    def test_fetch_before_precompute_raises(self, tile_engine):
        cache = GpuBufferCache(tile_engine)

        with pytest.raises(NotInitialized, match="precompute_gpu_data"):
            cache.fetch()
        assert not cache.initialized

    def test_precompute_returns_elapsed_ms(self, tile_engine):
        elapsed = GpuBufferCache(tile_engine).precompute()

        assert isinstance(elapsed, float)
        assert elapsed >= 0.0

    def test_buffer_matches_example(self, tile_engine):
        cache = GpuBufferCache(tile_engine)
        cache.precompute(RenderConfig(1.0, 1.0))

        count, positions, colors = GPU_LAYOUT.decode(cache.fetch())

        assert count == 3
        np.testing.assert_array_equal(
            positions.ravel(),
            np.array([0, 0, 2.0, 1, 1, 0, 1.0, 1, 0, 1, 0.0, 1], dtype=np.float32),
        )
        np.testing.assert_array_equal(
            colors.ravel(),
            np.array(
                [0.3, 0.7, 0.3, 1, 0.2, 0.5, 0.8, 1, 0.5, 0.5, 0.5, 1], dtype=np.float32
            ),
        )

    def test_rows_follow_canonical_order(self, grid_engine):
        """Tiles inserted in reverse still pack in (y, x) order."""
        cache = GpuBufferCache(grid_engine)
        cache.precompute()

        count, positions, _ = GPU_LAYOUT.decode(cache.fetch())

        assert count == 64
        assert positions[:3, :2].tolist() == [[0, 0], [1, 0], [2, 0]]
        assert positions[8, :2].tolist() == [0, 1]

    def test_precompute_replaces_buffer(self, tile_engine):
        cache = GpuBufferCache(tile_engine)
        cache.precompute(RenderConfig(1.0, 1.0))
        first = cache.fetch()

        cache.precompute(RenderConfig(2.0, 1.0))
        second = cache.fetch()

        assert first != second
        assert cache.generation == 2
        _, positions, _ = GPU_LAYOUT.decode(second)
        assert positions[1, 0] == 2.0

    def test_fetch_does_not_touch_engine(self, tile_engine, monkeypatch):
        cache = GpuBufferCache(tile_engine)
        cache.precompute()

        def fail(*args, **kwargs):
            raise AssertionError("engine queried on fetch")

        monkeypatch.setattr(tile_engine, "query_arrow", fail)

        assert GPU_LAYOUT.read_count(cache.fetch()) == 3

    def test_buffer_does_not_follow_table_writes(self, tile_engine):
        """The slot only changes on an explicit precompute."""
        cache = GpuBufferCache(tile_engine)
        cache.precompute()

        tile_engine.execute("DELETE FROM tiles")

        assert GPU_LAYOUT.read_count(cache.fetch()) == 3

    def test_clear_returns_to_uninitialized(self, tile_engine):
        cache = GpuBufferCache(tile_engine)
        cache.precompute()
        cache.clear()

        with pytest.raises(NotInitialized):
            cache.fetch()


class TestRawColumnCache:
    """Test RawColumnCache and export_raw_columns()."""

    def test_fetch_before_precompute_raises(self, tile_engine):
        with pytest.raises(NotInitialized, match="cache_raw_columns"):
            RawColumnCache(tile_engine).fetch()

    def test_buffer_holds_untransformed_columns(self, tile_engine):
        cache = RawColumnCache(tile_engine)
        cache.precompute()

        count, x, y, tile_type, elevation = RAW_LAYOUT.decode(cache.fetch())

        assert count == 3
        assert x.tolist() == [0, 1, 0]
        assert y.tolist() == [0, 0, 1]
        assert tile_type.tolist() == [1, 0, 9]
        assert elevation.tolist() == [2.0, 1.0, 0.0]

    def test_matches_uncached_export(self, tile_engine):
        cache = RawColumnCache(tile_engine)
        cache.precompute()

        assert cache.fetch() == export_raw_columns(tile_engine)

    def test_empty_table_packs_header_only(self, tile_engine):
        tile_engine.execute("DELETE FROM tiles")

        assert export_raw_columns(tile_engine) == b"\x00\x00\x00\x00"


class TestScalarCacheBase:
    """Test the base ScalarCache."""

    def test_precompute_is_unsupported(self, engine):
        with pytest.raises(Unsupported):
            ScalarCache(engine).precompute()

    def test_store_then_fetch(self, engine):
        cache = ScalarCache(engine)
        cache.store(b"\x00\x00\x00\x00")

        assert cache.fetch() == b"\x00\x00\x00\x00"
        assert cache.generation == 1
