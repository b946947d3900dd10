"""
Binary packer/unpacker for ultralogi wire buffers.

Every packed buffer shares one shape: a 4-byte little-endian row count,
followed by one dense segment per column, each segment holding `count` rows
of a fixed per-row width:

    [count:u32 LE][segment 0][segment 1]...[segment N-1]

Three layouts are defined here and nowhere else:

    GPU_LAYOUT    [count][positions: count*vec4<f32>][colors: count*vec4<f32>]
    RAW_LAYOUT    [count][x: count*i32][y: count*i32][type: count*i32][elevation: count*f32]
    VOXEL_LAYOUT  [count][x: count*u8][y: count*u8][z: count*u8][type: count*u8]

Encoding copies each array once into a preallocated buffer. Decoding never
copies: arrays come back as read-only numpy views over the input bytes.

A buffer shorter than `4 + count * row_bytes` raises MalformedBuffer. Bytes
past the last segment are ignored.

Usage:
    blob = GPU_LAYOUT.encode(count, positions, colors)
    count, positions, colors = GPU_LAYOUT.decode(blob)
    count, pos_bytes, color_bytes = GPU_LAYOUT.slices(blob)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from ultralogi.constants import HEADER_BYTES
from ultralogi.errors import MalformedBuffer

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

HEADER_DTYPE = np.dtype("<u4")
MAX_COUNT = int(np.iinfo(HEADER_DTYPE).max)


@dataclass(frozen=True)
class Segment:
    """One dense per-row column of a layout."""

    name: str
    dtype: str
    components: int = 1

    @property
    def row_bytes(self) -> int:
        return np.dtype(self.dtype).itemsize * self.components


@dataclass(frozen=True)
class BufferLayout:
    """A count header followed by fixed-width segments, in order."""

    name: str
    segments: Tuple[Segment, ...]

    @property
    def row_bytes(self) -> int:
        return sum(s.row_bytes for s in self.segments)

    def expected_length(self, count: int) -> int:
        return HEADER_BYTES + count * self.row_bytes

    def segment_ranges(self, count: int) -> List[Tuple[int, int]]:
        """Byte ranges [start, end) of each segment for a given count."""
        ranges = []
        offset = HEADER_BYTES
        for segment in self.segments:
            end = offset + count * segment.row_bytes
            ranges.append((offset, end))
            offset = end
        return ranges

    # -------------------------------------------------------------------------
    # Encode
    # -------------------------------------------------------------------------

    def encode(self, count: int, *arrays) -> bytes:
        """
        Pack `count` rows.

        Args:
            count: Number of rows
            *arrays: One array per segment, in layout order. Anything numpy
                can view as the segment dtype; multi-component segments take
                either (count, components) or flat count*components arrays.

        Returns:
            Exactly expected_length(count) bytes

        Raises:
            ValueError: Wrong number of arrays, count out of u32 range, or an
                array whose element count disagrees with count
        """
        if len(arrays) != len(self.segments):
            raise ValueError(
                f"{self.name} layout takes {len(self.segments)} arrays, "
                f"got {len(arrays)}"
            )
        if count < 0 or count > MAX_COUNT:
            raise ValueError(f"count {count} does not fit in u32")

        out = np.empty(self.expected_length(count), dtype=np.uint8)
        out[:HEADER_BYTES] = np.frombuffer(
            np.array([count], dtype=HEADER_DTYPE).tobytes(), dtype=np.uint8
        )

        for segment, (start, end), array in zip(
            self.segments, self.segment_ranges(count), arrays
        ):
            values = np.ascontiguousarray(array, dtype=segment.dtype).reshape(-1)
            if values.size != count * segment.components:
                raise ValueError(
                    f"{self.name}.{segment.name}: expected "
                    f"{count * segment.components} values, got {values.size}"
                )
            out[start:end] = values.view(np.uint8)

        return out.tobytes()

    # -------------------------------------------------------------------------
    # Decode
    # -------------------------------------------------------------------------

    def read_count(self, data: BytesLike) -> int:
        """Read the header and check the buffer is long enough for it."""
        if len(data) < HEADER_BYTES:
            raise MalformedBuffer(
                f"{self.name}: {len(data)} bytes is shorter than the header",
                expected=HEADER_BYTES,
                actual=len(data),
            )
        count = int(np.frombuffer(data, dtype=HEADER_DTYPE, count=1)[0])
        expected = self.expected_length(count)
        if len(data) < expected:
            raise MalformedBuffer(
                f"{self.name}: header declares {count} rows ({expected} bytes) "
                f"but buffer holds {len(data)} bytes",
                expected=expected,
                actual=len(data),
            )
        return count

    def slices(self, data: BytesLike) -> Tuple:
        """
        Return (count, segment_0_bytes, ..., segment_N_bytes) as memoryviews.

        Raises:
            MalformedBuffer: If data is shorter than its header implies
        """
        count = self.read_count(data)
        view = memoryview(data)
        return (count,) + tuple(view[start:end] for start, end in self.segment_ranges(count))

    def decode(self, data: BytesLike) -> Tuple:
        """
        Return (count, array_0, ..., array_N) as numpy views.

        Multi-component segments come back shaped (count, components).

        Raises:
            MalformedBuffer: If data is shorter than its header implies
        """
        count, *parts = self.slices(data)
        arrays = []
        for segment, part in zip(self.segments, parts):
            values = np.frombuffer(part, dtype=segment.dtype)
            if segment.components > 1:
                values = values.reshape(count, segment.components)
            arrays.append(values)
        return (count, *arrays)

    # -------------------------------------------------------------------------
    # Combine
    # -------------------------------------------------------------------------

    def concat(self, parts: Iterable[Sequence]) -> bytes:
        """
        Join already-sliced buffers segment by segment.

        Each part is a slices() result. The output holds every part's segment 0
        in input order, then every part's segment 1, and so on, under one
        header whose count is the sum of the parts' counts.
        """
        parts = list(parts)
        total = sum(int(p[0]) for p in parts)
        if total > MAX_COUNT:
            raise ValueError(f"combined count {total} does not fit in u32")

        pieces = [np.array([total], dtype=HEADER_DTYPE).tobytes()]
        for index in range(len(self.segments)):
            pieces.extend(bytes(p[index + 1]) for p in parts)
        return b"".join(pieces)


GPU_LAYOUT = BufferLayout(
    "gpu",
    (
        Segment("positions", "<f4", 4),
        Segment("colors", "<f4", 4),
    ),
)

RAW_LAYOUT = BufferLayout(
    "raw",
    (
        Segment("x", "<i4"),
        Segment("y", "<i4"),
        Segment("tile_type", "<i4"),
        Segment("elevation", "<f4"),
    ),
)

VOXEL_LAYOUT = BufferLayout(
    "voxel",
    (
        Segment("x", "u1"),
        Segment("y", "u1"),
        Segment("z", "u1"),
        Segment("block_type", "u1"),
    ),
)


def encode(count: int, positions, colors) -> bytes:
    """Pack a GPU buffer."""
    return GPU_LAYOUT.encode(count, positions, colors)


def decode(data: BytesLike) -> Tuple[int, np.ndarray, np.ndarray]:
    """Unpack a GPU buffer into (count, positions, colors)."""
    return GPU_LAYOUT.decode(data)
