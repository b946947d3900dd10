"""
Exception hierarchy for ultralogi.

    UltralogiError
    ├── EngineError       statement/query failure inside DuckDB
    ├── LockError         a critical section was poisoned by a failed holder
    ├── NotInitialized    scalar cache read before any precompute
    ├── MalformedBuffer   byte length inconsistent with the header
    └── Unsupported       operation not wired for a tier

EngineError and LockError are surfaced verbatim and never retried here.
NotInitialized and MalformedBuffer are recoverable by the caller.
"""


class UltralogiError(Exception):
    """Base class for all ultralogi errors."""


class EngineError(UltralogiError):
    """A statement or query failed inside the engine."""


class LockError(UltralogiError):
    """A critical section is poisoned; the resource is unusable."""


class NotInitialized(UltralogiError):
    """A single-slot cache was read before it was ever populated."""


class MalformedBuffer(UltralogiError):
    """A packed buffer is shorter than its header implies."""

    def __init__(self, message: str, expected: int = 0, actual: int = 0):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class Unsupported(UltralogiError):
    """The operation is not available for this cache tier."""
