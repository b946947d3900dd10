"""
Tests for ultralogi.cache.result module.

Covers:
- Hit / miss behaviour and exact-text keys
- invalidate_all() version and emptiness
- execute_with_invalidation() keyword rules and lock order
- stats()
"""

import polars as pl
import pytest

from ultralogi.cache.result import ResultCache
from ultralogi.errors import EngineError

SCAN = "SELECT x, y, tile_type, elevation FROM tiles ORDER BY y, x"


@pytest.fixture
def cache(tile_engine):
    return ResultCache(tile_engine)


class TestGetOrCompute:
    """Test get_or_compute()."""

    def test_miss_then_hit_are_identical(self, cache):
        miss = cache.get_or_compute(SCAN)
        hit = cache.get_or_compute(SCAN)

        assert isinstance(miss, pl.DataFrame)
        assert miss.equals(hit)
        assert miss.height == 3

    def test_hit_does_not_touch_engine(self, cache, monkeypatch):
        cache.get_or_compute(SCAN)

        def fail(*args, **kwargs):
            raise AssertionError("engine queried on a cache hit")

        monkeypatch.setattr(cache.engine, "query_arrow", fail)

        assert cache.get_or_compute(SCAN).height == 3

    def test_keys_are_exact_text(self, cache):
        cache.get_or_compute("SELECT * FROM tiles")
        cache.get_or_compute("select * from tiles")

        assert len(cache) == 2

    def test_returned_frames_are_independent(self, cache):
        """Mutating a returned frame does not change the cached entry."""
        first = cache.get_or_compute(SCAN)
        first = first.with_columns(pl.lit(0).alias("x"))

        assert cache.get_or_compute(SCAN)["x"].to_list() == [0, 1, 0]

    def test_failed_query_is_not_cached(self, cache):
        with pytest.raises(EngineError):
            cache.get_or_compute("SELECT * FROM nowhere")

        assert len(cache) == 0

    def test_miss_racing_invalidation_is_not_stored(self, cache, monkeypatch):
        """A miss whose query overlapped an invalidation is returned but not kept."""
        real_query = cache.engine.query_arrow

        def query_then_invalidate(sql, params=None):
            table = real_query(sql, params)
            cache.invalidate_all()
            return table

        monkeypatch.setattr(cache.engine, "query_arrow", query_then_invalidate)

        frame = cache.get_or_compute(SCAN)

        assert frame.height == 3
        assert SCAN not in cache


class TestInvalidateAll:
    """Test invalidate_all()."""

    def test_clears_and_bumps_version_by_one(self, cache):
        cache.get_or_compute(SCAN)
        cache.get_or_compute("SELECT 1")
        before = cache.version

        assert cache.invalidate_all() == before + 1

        stats = cache.stats()
        assert stats.entries == 0
        assert stats.version == before + 1

    def test_empty_cache_still_bumps_version(self, cache):
        cache.invalidate_all()
        cache.invalidate_all()

        assert cache.version == 2


class TestExecuteWithInvalidation:
    """Test execute_with_invalidation()."""

    def test_write_invalidates(self, cache):
        cache.get_or_compute(SCAN)

        rows = cache.execute_with_invalidation("insert into tiles values (5, 5, 2, 3.0)")

        assert rows == 1
        assert cache.stats().entries == 0
        assert cache.version == 1
        assert cache.get_or_compute(SCAN).height == 4

    def test_read_does_not_invalidate(self, cache):
        cache.get_or_compute(SCAN)

        cache.execute_with_invalidation("SELECT COUNT(*) FROM tiles")

        assert cache.stats().entries == 1
        assert cache.version == 0

    def test_unrelated_write_clears_everything(self, cache):
        """Invalidation is whole-cache, not per-table."""
        cache.get_or_compute(SCAN)

        cache.execute_with_invalidation("CREATE TABLE unrelated (i INTEGER)")

        assert cache.stats().entries == 0

    def test_failed_write_does_not_invalidate(self, cache):
        cache.get_or_compute(SCAN)

        with pytest.raises(EngineError):
            cache.execute_with_invalidation("INSERT INTO nowhere VALUES (1)")

        assert cache.stats().entries == 1
        assert cache.version == 0

    def test_engine_section_released_before_invalidation(self, cache, monkeypatch):
        held = []
        real_invalidate = cache.invalidate_all

        def checking_invalidate():
            held.append(cache.engine.section._lock.locked())
            return real_invalidate()

        monkeypatch.setattr(cache, "invalidate_all", checking_invalidate)

        cache.execute_with_invalidation("DELETE FROM tiles WHERE x = 1")

        assert held == [False]


class TestStats:
    """Test stats()."""

    def test_counts_rows_per_query(self, cache):
        cache.get_or_compute(SCAN)
        cache.get_or_compute("SELECT 1 AS one")

        stats = cache.stats()

        assert stats.entries == 2
        assert stats.total_rows == 4
        assert stats.queries == {SCAN: 3, "SELECT 1 AS one": 1}
        assert stats.to_dict()["totalRows"] == 4
