"""
Utility functions for todo-integrator.
"""

from .io import safe_read_json, safe_write_json, write_json, atomic_write
from .date import parse_date, today_iso, parse_iso_datetime
from .text import clean_task_title, normalize_title, has_legacy_tag, titles_match

__all__ = [
    # I/O utilities
    'safe_read_json',
    'safe_write_json',
    'write_json',
    'atomic_write',
    # Date utilities
    'parse_date',
    'today_iso',
    'parse_iso_datetime',
    # Text utilities
    'clean_task_title',
    'normalize_title',
    'has_legacy_tag',
    'titles_match',
]
