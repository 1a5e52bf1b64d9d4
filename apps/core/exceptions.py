"""
Shared error taxonomy for UniLink services.

Every service-level failure is one of four kinds. Apps subclass these
with specific errors (``GroupNotFoundError(NotFoundError)`` and so on)
so views can map a whole family to one HTTP status:

    ServiceError (base)
    ├── DomainValidationError   -> 400
    ├── NotFoundError           -> 404
    ├── ForbiddenError          -> 403
    └── ConflictError           -> 409

Usage:
    from apps.core.exceptions import error_response

    try:
        approve_request(...)
    except ServiceError as e:
        return error_response(e)
"""

from rest_framework import status
from rest_framework.response import Response


class ServiceError(Exception):
    """Base exception for all service errors."""

    status_code = status.HTTP_400_BAD_REQUEST


class DomainValidationError(ServiceError):
    """Raised when input is malformed or missing (e.g. empty comment)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist or is inactive."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(ServiceError):
    """Raised when the actor lacks privilege for the requested mutation."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(ServiceError):
    """Raised when a mutation violates the current state (already a member...)."""

    status_code = status.HTTP_409_CONFLICT


def error_response(exc: ServiceError) -> Response:
    """Build the JSON error response for a service error."""
    return Response({'error': str(exc)}, status=exc.status_code)
