"""
Command implementations for todo-integrator.
"""

from .sync import SyncCommand
from .metadata import MetadataCommand

__all__ = [
    'SyncCommand',
    'MetadataCommand',
]
