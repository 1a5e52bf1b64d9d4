"""
Domain-specific exceptions for posts app.

Each one belongs to one of the shared kinds in ``apps.core.exceptions``
so views can answer with the matching HTTP status.
"""

from apps.core.exceptions import (
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)


class PostsServiceError(ServiceError):
    """Base exception for all posts service errors."""
    pass


class PostNotFoundError(PostsServiceError, NotFoundError):
    """Raised when a post does not exist or is inactive."""
    pass


class CommentNotFoundError(PostsServiceError, NotFoundError):
    """Raised when a comment does not exist on the post."""
    pass


class InvalidPostDataError(PostsServiceError, DomainValidationError):
    """Raised when post content, media, tags or visibility are invalid."""
    pass


class EmptyCommentError(PostsServiceError, DomainValidationError):
    """Raised when comment text is empty after trimming."""
    pass


class CommentTooLongError(PostsServiceError, DomainValidationError):
    """Raised when comment text exceeds the length limit."""
    pass


class MembershipRequiredError(PostsServiceError, ForbiddenError):
    """Raised when a non-member tries to post in or read a group."""
    pass


class NotPostAuthorError(PostsServiceError, ForbiddenError):
    """Raised when a user other than the author (or a system admin) modifies a post."""
    pass


class NotCommentAuthorError(PostsServiceError, ForbiddenError):
    """Raised when a user may not edit or remove a comment."""
    pass
