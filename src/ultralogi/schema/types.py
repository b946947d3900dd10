"""
Type definitions for ultralogi table schemas.

Column types declare how engine columns map to Arrow types and to the
little-endian numpy dtypes the packer writes. Every table that feeds a packed
buffer is declared here, so the engine, the cache tiers and the packer agree
on widths without re-deriving them.

Supported Types:
- Int: signed 32/64-bit integers
- UInt8: unsigned byte (voxel coordinates and block types)
- Float: 32/64-bit floats
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

import numpy as np
import pyarrow as pa


class BaseType(ABC):
    """Base class for all ultralogi column types."""

    @abstractmethod
    def to_arrow(self) -> pa.DataType:
        """Convert to PyArrow data type."""
        pass

    @abstractmethod
    def to_numpy(self) -> np.dtype:
        """Little-endian numpy dtype used on the wire."""
        pass

    @property
    def itemsize(self) -> int:
        return self.to_numpy().itemsize

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other) -> bool:
        """Compare types for equality."""
        return isinstance(other, self.__class__)

    def __hash__(self) -> int:
        """Make types hashable for use in sets/dicts."""
        return hash(self.__class__.__name__)


@dataclass(frozen=True)
class Int(BaseType):
    """Signed integer type."""
    bits: int = 32

    def to_arrow(self) -> pa.DataType:
        return pa.int64() if self.bits == 64 else pa.int32()

    def to_numpy(self) -> np.dtype:
        return np.dtype("<i8") if self.bits == 64 else np.dtype("<i4")

    def __post_init__(self):
        if self.bits not in (32, 64):
            raise ValueError("Int bits must be either 32 or 64")


class UInt8(BaseType):
    """Unsigned byte type."""

    def to_arrow(self) -> pa.DataType:
        return pa.uint8()

    def to_numpy(self) -> np.dtype:
        return np.dtype("u1")


@dataclass(frozen=True)
class Float(BaseType):
    """Floating-point type."""
    bits: int = 32

    def to_arrow(self) -> pa.DataType:
        return pa.float64() if self.bits == 64 else pa.float32()

    def to_numpy(self) -> np.dtype:
        return np.dtype("<f8") if self.bits == 64 else np.dtype("<f4")

    def __post_init__(self):
        if self.bits not in (32, 64):
            raise ValueError("Float bits must be either 32 or 64")


class TableSchema:
    """
    Ordered column declaration for one engine table.

    Example:
        >>> schema = TableSchema("tiles", {"x": Int(), "elevation": Float()})
        >>> schema.to_arrow()
        x: int32
        elevation: float
    """

    def __init__(self, name: str, fields: Dict[str, BaseType]):
        if not fields:
            raise ValueError("TableSchema needs at least one field")
        self.name = name
        self.fields = dict(fields)

    def to_arrow(self) -> pa.Schema:
        return pa.schema([(name, t.to_arrow()) for name, t in self.fields.items()])

    def cast(self, table: pa.Table) -> pa.Table:
        """
        Select and cast a table's columns to this schema, in schema order.

        Raises:
            ValueError: If a declared column is missing
        """
        missing = [name for name in self.fields if name not in table.column_names]
        if missing:
            raise ValueError(f"{self.name}: missing columns {missing}")
        return table.select(list(self.fields)).cast(self.to_arrow())

    @property
    def row_width(self) -> int:
        """Bytes per row when every column is packed once."""
        return sum(t.itemsize for t in self.fields.values())

    def __repr__(self) -> str:
        cols = ", ".join(f"{k}={v!r}" for k, v in self.fields.items())
        return f"TableSchema({self.name!r}, {cols})"
