"""
Voxel world for ultralogi.
"""

from ultralogi.world.voxels import VOXELS_PER_CHUNK, VoxelWorld

__all__ = [
    "VoxelWorld",
    "VOXELS_PER_CHUNK",
]
