"""
Arrow IPC stream helpers.

`query()` results and the cached tile table travel to the front-end as Arrow
IPC *stream* format (schema message, then record batches, then EOS). These
helpers write that format from batches or frames and read it back into
pyarrow, pandas or polars.

An empty result is still a valid stream: schema followed by zero batches.
"""

import logging
from typing import Iterable, Literal, Union

import pandas as pd
import polars as pl
import pyarrow as pa

logger = logging.getLogger(__name__)


def write_ipc_stream(schema: pa.Schema, batches: Iterable[pa.RecordBatch]) -> bytes:
    """
    Serialise record batches as one Arrow IPC stream.

    Args:
        schema: Stream schema (written even if there are no batches)
        batches: Record batches matching schema, written in order

    Returns:
        IPC stream bytes
    """
    sink = pa.BufferOutputStream()
    with pa.ipc.new_stream(sink, schema) as writer:
        for batch in batches:
            if batch.num_rows:
                writer.write_batch(batch)
    return sink.getvalue().to_pybytes()


def table_to_ipc(table: Union[pa.Table, pl.DataFrame]) -> bytes:
    """Serialise a whole pyarrow Table or polars DataFrame as an IPC stream."""
    if isinstance(table, pl.DataFrame):
        table = table.to_arrow()
    return write_ipc_stream(table.schema, table.to_batches())


def read_ipc_stream(data: bytes) -> pa.Table:
    """Read an IPC stream back into one pyarrow Table."""
    with pa.ipc.open_stream(pa.py_buffer(data)) as reader:
        return reader.read_all()


def ipc_to_dataframe(
    data: bytes,
    engine: Literal["pandas", "polars"] = "pandas",
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Read an IPC stream into a DataFrame.

    Args:
        data: IPC stream bytes
        engine: "pandas" or "polars"

    Example:
        >>> df = ipc_to_dataframe(engine.query("SELECT * FROM tiles"))
    """
    table = read_ipc_stream(data)
    if engine == "pandas":
        return table.to_pandas()
    elif engine == "polars":
        return pl.from_arrow(table)
    raise ValueError(f"engine must be 'pandas' or 'polars', got {engine!r}")
