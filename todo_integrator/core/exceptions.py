"""
Exception classes for todo-integrator.
"""


class TodoIntegratorError(Exception):
    """Base exception for all todo-integrator errors."""
    pass


class ConfigurationError(TodoIntegratorError):
    """Raised when configuration is invalid or missing."""
    pass


class LocalStoreError(TodoIntegratorError):
    """Raised when the daily-notes store cannot be read or modified."""
    pass


class RemoteStoreError(TodoIntegratorError):
    """Base exception for remote task service errors."""
    pass


class AuthenticationError(RemoteStoreError):
    """Raised when an access token cannot be obtained."""
    pass


class TodoApiError(RemoteStoreError):
    """Raised when the Microsoft Graph To Do API rejects a request."""

    def __init__(self, message: str, status_code: int = 0, code: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class SyncError(TodoIntegratorError):
    """Raised when sync operations fail."""
    pass


class SyncInProgressError(SyncError):
    """Raised when a sync cycle is started while another is still running."""
    pass
