"""
End-to-end tests through the Ultralogi facade.

Exercises every boundary operation against one in-memory engine, the way a
binding layer would call them.
"""

import numpy as np
import pytest

from ultralogi import GPU_LAYOUT, RAW_LAYOUT, Tier
from ultralogi.errors import EngineError, NotInitialized, Unsupported
from ultralogi.storage.ipc import ipc_to_dataframe

EXAMPLE_POSITIONS = np.array([0, 0, 2.0, 1, 1, 0, 1.0, 1, 0, 1, 0.0, 1], dtype=np.float32)
EXAMPLE_COLORS = np.array(
    [0.3, 0.7, 0.3, 1, 0.2, 0.5, 0.8, 1, 0.5, 0.5, 0.5, 1], dtype=np.float32
)


@pytest.fixture
def loaded(ul, example_tiles):
    ul.load_tiles(example_tiles)
    return ul


def test_execute_and_query(ul):
    ul.execute("CREATE TABLE t (i INTEGER)")
    assert ul.execute("INSERT INTO t VALUES (1), (2)") == 2

    df = ipc_to_dataframe(ul.query("SELECT i FROM t ORDER BY i"))

    assert df["i"].tolist() == [1, 2]


def test_query_cached_serves_gpu_buffer(loaded):
    count, positions, colors = GPU_LAYOUT.decode(loaded.query_cached())

    assert count == 3
    np.testing.assert_array_equal(positions.ravel(), EXAMPLE_POSITIONS)
    np.testing.assert_array_equal(colors.ravel(), EXAMPLE_COLORS)
    assert loaded.cache_stats()["entries"] == 1


def test_query_cached_ipc(loaded):
    df = ipc_to_dataframe(loaded.query_cached_ipc(), engine="polars")

    assert df.height == 3
    assert df.columns == ["x", "y", "tile_type", "elevation"]


def test_execute_with_cache_invalidates_on_write(loaded):
    loaded.query_cached()
    version = loaded.cache_stats()["version"]

    assert loaded.execute_with_cache("INSERT INTO tiles VALUES (2, 2, 3, 5.0)") == 1

    stats = loaded.cache_stats()
    assert stats["entries"] == 0
    assert stats["version"] == version + 1
    assert GPU_LAYOUT.read_count(loaded.query_cached()) == 4


def test_raw_execute_bypasses_invalidation(loaded):
    """execute() is the uncached path; only execute_with_cache invalidates."""
    loaded.query_cached()

    loaded.execute("INSERT INTO tiles VALUES (2, 2, 3, 5.0)")

    assert loaded.cache_stats()["entries"] == 1
    assert GPU_LAYOUT.read_count(loaded.query_cached()) == 3


def test_cache_stats_and_clear(loaded):
    loaded.query_cached()

    stats = loaded.cache_stats()
    assert stats["entries"] == 1
    assert stats["totalRows"] == 3

    loaded.clear_cache()

    stats = loaded.cache_stats()
    assert stats == {"version": stats["version"], "entries": 0, "totalRows": 0, "queries": {}}


def test_load_tiles_invalidates(loaded, example_tiles):
    loaded.query_cached()

    loaded.load_tiles(example_tiles)

    assert loaded.cache_stats()["entries"] == 0


def test_precomputed_gpu_flow(loaded):
    with pytest.raises(NotInitialized):
        loaded.fetch_precomputed()

    elapsed = loaded.precompute_gpu_data(spacing=1.0, color_scale=1.0)

    assert elapsed >= 0
    count, positions, colors = GPU_LAYOUT.decode(loaded.fetch_precomputed())
    assert count == 3
    np.testing.assert_array_equal(positions.ravel(), EXAMPLE_POSITIONS)
    np.testing.assert_array_equal(colors.ravel(), EXAMPLE_COLORS)


def test_raw_column_flow(loaded):
    with pytest.raises(NotInitialized):
        loaded.fetch_cached_raw()

    loaded.cache_raw_columns()

    assert loaded.fetch_cached_raw() == loaded.export_raw_columns()
    count, x, *_ = RAW_LAYOUT.decode(loaded.fetch_cached_raw())
    assert count == 3
    assert x.tolist() == [0, 1, 0]


def test_chunk_flow(ul, grid_tiles):
    ul.load_tiles(grid_tiles)

    info = ul.generate_chunks(8, 4, spacing=1.0, color_scale=1.0)

    assert info.chunks == ul.chunk_count() == 4
    assert GPU_LAYOUT.read_count(ul.query_combined_chunks()) == 64


def test_voxel_flow(ul):
    ul.create_voxel_world(0, 0)

    data = ul.query_voxel_chunk_raw(0, 0)

    assert len(data) > 4
    assert ipc_to_dataframe(ul.query_voxel_chunk(0, 0)).shape[0] == (len(data) - 4) // 4


def test_refresh_tiers(loaded):
    loaded.refresh(Tier.GPU)
    loaded.refresh(Tier.RAW)

    assert GPU_LAYOUT.read_count(loaded.fetch_precomputed()) == 3
    with pytest.raises(Unsupported):
        loaded.refresh(Tier.RESULT)
    with pytest.raises(Unsupported):
        loaded.refresh(Tier.CHUNKS)


def test_engine_errors_surface(ul):
    with pytest.raises(EngineError):
        ul.query_cached()
    with pytest.raises(EngineError):
        ul.execute_with_cache("DROP TABLE nowhere")


def test_explain(loaded):
    plan = loaded.explain("SELECT * FROM tiles")

    assert isinstance(plan, str)
    assert plan.strip()


class TestBenchmarks:
    """Timing breakdowns."""

    def test_precomputed_requires_initialization(self, loaded):
        with pytest.raises(NotInitialized):
            loaded.benchmark_precomputed_query()

    def test_precomputed(self, loaded):
        loaded.precompute_gpu_data()

        result = loaded.benchmark_precomputed_query()

        assert result["rows"] == 3
        assert result["bytes"] == 4 + 3 * 32
        assert set(result["breakdown"]) == {"fetch_us", "header_us"}

    def test_result_cache(self, loaded):
        result = loaded.benchmark_result_cache()

        assert result["rows"] == 3
        assert result["ipc_bytes"] > 0
        assert result["cold_us"] >= 0

    def test_chunked(self, ul, grid_tiles):
        ul.load_tiles(grid_tiles)
        ul.generate_chunks(8, 2)

        result = ul.benchmark_chunked_query()

        assert result["rows"] == 64
        assert result["chunks"] == 16
        assert result["skipped"] == 0
