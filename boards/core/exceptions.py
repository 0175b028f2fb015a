"""Domain exceptions raised by services and mapped to HTTP responses in boards.main."""
from typing import Optional


class BoardsError(Exception):
    """Base class for errors the API reports to callers."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(BoardsError):
    """A referenced user, event or RSVP does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        super().__init__(message, details={'id': identifier} if identifier else None)
        self.resource = resource
        self.identifier = identifier


class ForbiddenError(BoardsError):
    """The acting user may not modify the resource."""

    status_code = 403


class AuthenticationError(BoardsError):
    """No acting user could be resolved for the request."""

    status_code = 401


class RequestValidationFailed(BoardsError):
    """Input that passed schema checks but conflicts with stored state."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message, details={'field': field})
        self.field = field
