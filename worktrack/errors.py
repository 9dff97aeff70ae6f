"""Custom exceptions for the sync and notification layer."""

from typing import Optional


class WorkTrackError(Exception):
    """Base exception for WorkTrack errors."""
    pass


class BackendError(WorkTrackError):
    """A backend query, mutation or storage call failed (network or authorization)."""

    def __init__(self, operation: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message
        self.cause = cause


class EntityNotFoundError(WorkTrackError):
    """Requested entity not found."""
    pass


class MalformedEventError(WorkTrackError):
    """Change event payload is missing an id or order reference."""
    pass


class SessionNotActiveError(WorkTrackError):
    """Operation requires a signed-in viewer."""
    pass
