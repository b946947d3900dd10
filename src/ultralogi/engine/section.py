"""
Critical sections with poisoning.

Every shared resource (the engine connection and each cache tier) owns one
Section. A Section is a blocking mutex with one extra rule: if an exception
that is not an UltralogiError escapes while the section is held, the holder
is considered to have failed mid-update and the section becomes poisoned.
Every later entry raises LockError.

Callers keep sections healthy by converting expected failures (engine errors,
malformed buffers) into UltralogiError subclasses before leaving the block.

Usage:
    section = Section("engine")
    with section:
        ...  # exclusive access
"""

import logging
import threading
from typing import Optional

from ultralogi.errors import LockError, UltralogiError

logger = logging.getLogger(__name__)


class Section:
    """Named, poisonable mutual-exclusion section."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._poisoned: Optional[BaseException] = None

    @property
    def poisoned(self) -> bool:
        return self._poisoned is not None

    def __enter__(self) -> "Section":
        self._lock.acquire()
        if self._poisoned is not None:
            self._lock.release()
            raise LockError(
                f"{self.name} section poisoned by earlier failure: "
                f"{self._poisoned!r}"
            )
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is not None and not isinstance(exc, UltralogiError):
                self._poisoned = exc
                logger.error(
                    "%s section poisoned by %s: %s",
                    self.name,
                    exc_type.__name__,
                    exc,
                )
        finally:
            self._lock.release()
        return False

    def __repr__(self) -> str:
        state = "poisoned" if self.poisoned else "ok"
        return f"Section({self.name!r}, {state})"
