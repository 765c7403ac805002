"""
Obsidian daily-notes store.
"""

from .daily_notes import DailyNoteManager

__all__ = ['DailyNoteManager']
