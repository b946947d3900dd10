"""
Wire formats for ultralogi.

- Packer: the single encode/decode module for every packed buffer layout
- IPC: Arrow IPC stream read/write for query results
"""

from .ipc import ipc_to_dataframe, read_ipc_stream, table_to_ipc, write_ipc_stream
from .packer import GPU_LAYOUT, RAW_LAYOUT, VOXEL_LAYOUT, BufferLayout, Segment

__all__ = [
    "BufferLayout",
    "Segment",
    "GPU_LAYOUT",
    "RAW_LAYOUT",
    "VOXEL_LAYOUT",
    "write_ipc_stream",
    "table_to_ipc",
    "read_ipc_stream",
    "ipc_to_dataframe",
]
