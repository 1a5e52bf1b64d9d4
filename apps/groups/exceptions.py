"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses. Each one
belongs to one of the shared kinds in ``apps.core.exceptions``.
"""

from apps.core.exceptions import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)


class GroupsServiceError(ServiceError):
    """Base exception for all groups service errors."""
    pass


class GroupNotFoundError(GroupsServiceError, NotFoundError):
    """Raised when a group does not exist or is inactive."""
    pass


class MemberNotFoundError(GroupsServiceError, NotFoundError):
    """Raised when the target user of a membership operation does not exist."""
    pass


class JoinRequestNotFoundError(GroupsServiceError, NotFoundError):
    """Raised when no pending join request exists for the user."""
    pass


class AlreadyMemberError(GroupsServiceError, ConflictError):
    """Raised when a user tries to join a group they're already in."""
    pass


class JoinRequestPendingError(GroupsServiceError, ConflictError):
    """Raised when a join request for the user is already pending."""
    pass


class NotMemberError(GroupsServiceError, ConflictError):
    """Raised when an operation requires the target to be a member."""
    pass


class CannotRemoveCreatorError(GroupsServiceError, ForbiddenError):
    """Raised when attempting to remove the group creator, by anyone."""
    pass


class CannotChangeCreatorRoleError(GroupsServiceError, ForbiddenError):
    """Raised when attempting to change the creator's role."""
    pass


class InsufficientPermissionsError(GroupsServiceError, ForbiddenError):
    """Raised when a user lacks required permissions for an action."""
    pass


class InactiveUserError(GroupsServiceError, ForbiddenError):
    """Raised when a deactivated account tries to join a group."""
    pass


class InvalidRoleError(GroupsServiceError, DomainValidationError):
    """Raised when a membership role is not one of the allowed values."""
    pass


class InvalidGroupDataError(GroupsServiceError, DomainValidationError):
    """Raised when group fields fail validation (name length, tags...)."""
    pass
