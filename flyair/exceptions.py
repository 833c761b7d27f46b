"""
Error taxonomy for the booking backend.

Every business error is raised where it is detected and carries the HTTP
status it maps to. The Flask error handlers in ``flyair.api.errors`` are the
only place these are translated into responses.
"""

from typing import Dict, Optional


class FlyAirError(Exception):
    """Base class for all business errors."""

    status_code = 500
    title = "Internal server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceNotFoundError(FlyAirError):
    """Referenced entity id or unique key does not exist."""

    status_code = 404
    title = "Resource not found"


class BadRequestError(FlyAirError):
    """Business rule violation: duplicate key, invalid transition, timing window."""

    status_code = 400
    title = "Bad request"


class UnauthorizedError(FlyAirError):
    """Authentication or credential failure."""

    status_code = 401
    title = "Unauthorized"


class AccessDeniedError(FlyAirError):
    """Authenticated principal lacks the required role."""

    status_code = 403
    title = "Access denied"


class ConflictError(FlyAirError):
    """A concurrent writer changed the row between our check and our write."""

    status_code = 409
    title = "Conflict"


class ValidationFailedError(FlyAirError):
    """Request shape errors, reported as a field -> message mapping."""

    status_code = 400
    title = "Validation failed"

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


__all__ = [
    "FlyAirError",
    "ResourceNotFoundError",
    "BadRequestError",
    "UnauthorizedError",
    "AccessDeniedError",
    "ConflictError",
    "ValidationFailedError",
]
