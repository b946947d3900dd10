"""
Timing breakdowns for the hot read paths.

Every function returns a plain dict of microsecond timings plus row/byte
counts, so results can be logged or serialised as JSON as they are.
"""

import logging
import time
from typing import Any, Dict

from ultralogi.cache.chunks import ChunkStore
from ultralogi.cache.result import ResultCache
from ultralogi.cache.scalar import ScalarCache
from ultralogi.constants import TILE_SCAN_SQL
from ultralogi.storage.ipc import table_to_ipc

logger = logging.getLogger(__name__)


def _us(start: float) -> float:
    return round((time.perf_counter() - start) * 1e6, 2)


def benchmark_precomputed_query(cache: ScalarCache) -> Dict[str, Any]:
    """
    Time one fetch from a precomputed buffer cache.

    Raises:
        NotInitialized: If the cache was never populated
    """
    total_start = time.perf_counter()

    fetch_start = time.perf_counter()
    data = cache.fetch()
    fetch_us = _us(fetch_start)

    header_start = time.perf_counter()
    count = cache.layout.read_count(data)
    header_us = _us(header_start)

    result = {
        "total_us": _us(total_start),
        "rows": count,
        "bytes": len(data),
        "breakdown": {"fetch_us": fetch_us, "header_us": header_us},
    }
    logger.debug("Precomputed %s query: %s", cache.name, result)
    return result


def benchmark_result_cache(cache: ResultCache, sql: str = TILE_SCAN_SQL) -> Dict[str, Any]:
    """Time a cold (miss) and a hot (hit) Result Cache lookup of the same query."""
    cache.invalidate_all()

    cold_start = time.perf_counter()
    cache.get_or_compute(sql)
    cold_us = _us(cold_start)

    hot_start = time.perf_counter()
    frame = cache.get_or_compute(sql)
    lookup_us = _us(hot_start)

    ipc_start = time.perf_counter()
    ipc = table_to_ipc(frame)
    ipc_us = _us(ipc_start)

    result = {
        "rows": frame.height,
        "ipc_bytes": len(ipc),
        "cold_us": cold_us,
        "hot_path_total_us": round(lookup_us + ipc_us, 2),
        "breakdown": {"lookup_us": lookup_us, "ipc_write_us": ipc_us},
    }
    logger.debug("Result cache: %s", result)
    return result


def benchmark_chunked_query(store: ChunkStore) -> Dict[str, Any]:
    """Time reading every chunk blob and combining them."""
    total_start = time.perf_counter()

    query_start = time.perf_counter()
    blobs = store.read_blobs()
    query_us = _us(query_start)

    combine_start = time.perf_counter()
    combined = store.combine(blobs)
    combine_us = _us(combine_start)

    result = {
        "total_us": _us(total_start),
        "rows": combined.count,
        "chunks": combined.chunks,
        "skipped": len(combined.skipped),
        "bytes": len(combined.buffer),
        "breakdown": {"query_us": query_us, "combine_us": combine_us},
    }
    logger.debug("Chunked query: %s", result)
    return result
