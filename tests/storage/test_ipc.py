"""
Tests for ultralogi.storage.ipc module.

Covers:
- write_ipc_stream() with and without batches
- table_to_ipc() from pyarrow and polars
- ipc_to_dataframe() engines
"""

import pandas as pd
import polars as pl
import pyarrow as pa
import pytest

from ultralogi.storage.ipc import (
    ipc_to_dataframe,
    read_ipc_stream,
    table_to_ipc,
    write_ipc_stream,
)


@pytest.fixture
def table():
    return pa.table({"x": pa.array([1, 2, 3], pa.int32()), "name": ["a", "b", "c"]})


class TestWriteIpcStream:
    """Test write_ipc_stream()."""

    def test_round_trips_batches(self, table):
        data = write_ipc_stream(table.schema, table.to_batches())

        assert read_ipc_stream(data).equals(table)

    def test_empty_stream_keeps_schema(self, table):
        """No batches still produces a readable stream with the schema."""
        data = write_ipc_stream(table.schema, [])

        result = read_ipc_stream(data)
        assert result.num_rows == 0
        assert result.schema.equals(table.schema)


class TestTableToIpc:
    """Test table_to_ipc()."""

    def test_from_pyarrow(self, table):
        assert read_ipc_stream(table_to_ipc(table)).equals(table)

    def test_from_polars(self, table):
        frame = pl.from_arrow(table)

        result = read_ipc_stream(table_to_ipc(frame))

        assert result.num_rows == 3
        assert result.column("x").to_pylist() == [1, 2, 3]


class TestIpcToDataFrame:
    """Test ipc_to_dataframe() engines."""

    def test_pandas_engine(self, table):
        df = ipc_to_dataframe(table_to_ipc(table), engine="pandas")

        assert isinstance(df, pd.DataFrame)
        assert list(df["x"]) == [1, 2, 3]

    def test_polars_engine(self, table):
        df = ipc_to_dataframe(table_to_ipc(table), engine="polars")

        assert isinstance(df, pl.DataFrame)
        assert df.height == 3

    def test_unknown_engine_raises(self, table):
        with pytest.raises(ValueError, match="engine"):
            ipc_to_dataframe(table_to_ipc(table), engine="spark")
