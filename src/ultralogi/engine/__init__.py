"""
Engine access for ultralogi.

One DuckDB connection behind one poisonable critical section.
"""

from ultralogi.engine.connection import Engine, LockedEngine
from ultralogi.engine.section import Section

__all__ = [
    "Engine",
    "LockedEngine",
    "Section",
]
