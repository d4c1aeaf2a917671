"""Utility functions."""

from .datetime import from_iso, now_utc, parse_datetime
from .slug import column_key

__all__ = [
    "column_key",
    "from_iso",
    "now_utc",
    "parse_datetime",
]
