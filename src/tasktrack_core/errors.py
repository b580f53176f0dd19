"""Domain exceptions raised by the task service and lifecycle engine.

The API layer maps each class to an HTTP status; the service layer never
deals in status codes.
"""
from typing import Optional


class TaskTrackerError(Exception):
    """Base class for expected, client-facing failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrackerError):
    """Raised when a request field is missing or invalid."""
    pass


class InvalidTransitionError(ValidationError):
    """Raised when a (status, assigner role, new owner role) combination is not in the transition table."""

    def __init__(
        self,
        message: str,
        current_status,
        assigner_role,
        new_owner_role,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.assigner_role = assigner_role
        self.new_owner_role = new_owner_role


class NotFoundError(TaskTrackerError):
    """Raised when a user or task id does not resolve."""

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity


class ForbiddenError(TaskTrackerError):
    """Raised when a role or ownership check fails."""
    pass
