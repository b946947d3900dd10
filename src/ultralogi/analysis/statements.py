"""
SQL statement classifier for cache invalidation.

The Result Cache is invalidated after any statement that may change data or
schema. Classification is deliberately coarse: it looks only at the leading
keyword, case-insensitively, and never at which tables a statement touches.
A write to any table clears every cached query.

================================================================================
KEYWORD CATEGORIES
================================================================================

    WRITE_KEYWORDS (6)
        Statements that trigger a whole-cache clear:
        INSERT, UPDATE, DELETE, DROP, CREATE, ALTER

    Everything else (SELECT, WITH, EXPLAIN, PRAGMA, SET, ...) leaves the cache
    alone. A write hidden behind a leading WITH clause is not detected.

================================================================================
"""

from __future__ import annotations

import re
from typing import Optional

__all__ = [
    "WRITE_KEYWORDS",
    "leading_keyword",
    "is_write_statement",
]

WRITE_KEYWORDS: frozenset[str] = frozenset(
    {
        # ── Data ────────────────────────────────────────────────────────────
        "INSERT",  # INSERT INTO tiles VALUES (...)
        "UPDATE",  # UPDATE tiles SET elevation = 0
        "DELETE",  # DELETE FROM tiles WHERE x > 10
        # ── Schema ──────────────────────────────────────────────────────────
        "DROP",  # DROP TABLE tiles
        "CREATE",  # CREATE TABLE / CREATE OR REPLACE ...
        "ALTER",  # ALTER TABLE tiles ADD COLUMN ...
    }
)

_LEADING_WORD = re.compile(r"\s*([A-Za-z]+)")


def leading_keyword(sql: str) -> Optional[str]:
    """
    First word of a statement, upper-cased.

    Example:
        >>> leading_keyword("  insert into tiles values (1, 2, 3, 4.0)")
        'INSERT'
    """
    match = _LEADING_WORD.match(sql)
    return match.group(1).upper() if match else None


def is_write_statement(sql: str) -> bool:
    """True if the statement's leading keyword is a write keyword."""
    return leading_keyword(sql) in WRITE_KEYWORDS
