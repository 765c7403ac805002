"""
Sync engine and identity store.
"""

from .engine import TodoSynchronizer
from .metadata import TaskMetadataStore, json_file_backend, STORAGE_KEY

__all__ = ['TodoSynchronizer', 'TaskMetadataStore', 'json_file_backend', 'STORAGE_KEY']
