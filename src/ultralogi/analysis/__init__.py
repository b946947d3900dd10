"""
Statement analysis for ultralogi.
"""

from ultralogi.analysis.statements import WRITE_KEYWORDS, is_write_statement, leading_keyword

__all__ = [
    "WRITE_KEYWORDS",
    "is_write_statement",
    "leading_keyword",
]
