"""
Chunk planner for ultralogi.

================================================================================
CHUNK GRID
================================================================================

A grid_size x grid_size tile square is cut into square chunks of chunk_size
tiles per side:

    chunks_per_side = grid_size // chunk_size

Chunk (cx, cy) owns the half-open tile interval

    [cx * chunk_size, (cx + 1) * chunk_size) x [cy * chunk_size, (cy + 1) * chunk_size)

so chunks are disjoint. When chunk_size does not divide grid_size the leftover
rows and columns past chunks_per_side * chunk_size belong to no chunk.

Work items are emitted in row-major chunk order, (chunk_y, chunk_x) ascending,
which is also the order the combined buffer is read back in.

================================================================================
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkWorkItem:
    """A single chunk to generate."""

    index: int
    total: int
    chunk_x: int
    chunk_y: int
    x_min: int
    x_max: int  # exclusive
    y_min: int
    y_max: int  # exclusive

    @property
    def key(self) -> Tuple[int, int]:
        return self.chunk_x, self.chunk_y

    @property
    def params(self) -> List[int]:
        """Bind parameters for the chunk scan, in (x_min, x_max, y_min, y_max) order."""
        return [self.x_min, self.x_max, self.y_min, self.y_max]

    def contains(self, x: int, y: int) -> bool:
        return self.x_min <= x < self.x_max and self.y_min <= y < self.y_max


def build_chunk_plan(grid_size: int, chunk_size: int) -> List[ChunkWorkItem]:
    """
    Plan the chunks covering a square tile grid.

    Args:
        grid_size: Tiles per side of the grid
        chunk_size: Tiles per side of one chunk

    Returns:
        (grid_size // chunk_size) ** 2 work items, ordered by (chunk_y, chunk_x)

    Raises:
        ValueError: If either size is not positive, or chunk_size > grid_size

    Example:
        >>> [item.key for item in build_chunk_plan(4, 2)]
        [(0, 0), (1, 0), (0, 1), (1, 1)]
    """
    if grid_size <= 0 or chunk_size <= 0:
        raise ValueError(
            f"grid_size and chunk_size must be positive, got {grid_size} and {chunk_size}"
        )

    chunks_per_side = grid_size // chunk_size
    if chunks_per_side == 0:
        raise ValueError(
            f"chunk_size ({chunk_size}) is larger than grid_size ({grid_size})"
        )

    if grid_size % chunk_size:
        logger.warning(
            "grid_size %d is not a multiple of chunk_size %d; "
            "tiles at or past %d are not covered by any chunk",
            grid_size,
            chunk_size,
            chunks_per_side * chunk_size,
        )

    total = chunks_per_side * chunks_per_side
    plan = []
    for cy in range(chunks_per_side):
        for cx in range(chunks_per_side):
            plan.append(
                ChunkWorkItem(
                    index=len(plan),
                    total=total,
                    chunk_x=cx,
                    chunk_y=cy,
                    x_min=cx * chunk_size,
                    x_max=(cx + 1) * chunk_size,
                    y_min=cy * chunk_size,
                    y_max=(cy + 1) * chunk_size,
                )
            )
    return plan
