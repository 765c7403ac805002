"""
Core module for todo-integrator - contains domain models, configuration, and exceptions.
"""

from .models import (
    TaskStatus,
    DateTimeTimeZone,
    RemoteTask,
    LocalTask,
    TaskMetadata,
    TransferResult,
    CompletionResult,
    ReconcileResult,
    SyncResult,
    SyncConfig
)

from .exceptions import (
    TodoIntegratorError,
    ConfigurationError,
    LocalStoreError,
    RemoteStoreError,
    AuthenticationError,
    TodoApiError,
    SyncError,
    SyncInProgressError
)

__all__ = [
    # Models
    'TaskStatus',
    'DateTimeTimeZone',
    'RemoteTask',
    'LocalTask',
    'TaskMetadata',
    'TransferResult',
    'CompletionResult',
    'ReconcileResult',
    'SyncResult',
    'SyncConfig',
    # Exceptions
    'TodoIntegratorError',
    'ConfigurationError',
    'LocalStoreError',
    'RemoteStoreError',
    'AuthenticationError',
    'TodoApiError',
    'SyncError',
    'SyncInProgressError'
]
