"""Domain-specific exceptions for accounts services."""

from apps.core.exceptions import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)


class AccountsServiceError(ServiceError):
    """Base exception for accounts services."""
    pass


class UserRegistrationError(AccountsServiceError, DomainValidationError):
    """Raised when registration input is rejected."""
    pass


class InstitutionEmailRequiredError(UserRegistrationError):
    """Raised when the email does not belong to the institution's domain."""
    pass


class EmailAlreadyRegisteredError(AccountsServiceError, ConflictError):
    """Raised when an account already exists for the email."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""

    status_code = 401


class InactiveAccountError(AccountsServiceError, ForbiddenError):
    """Raised when account is deactivated."""
    pass


class UserNotFoundError(AccountsServiceError, NotFoundError):
    """Raised when user does not exist or is inactive."""
    pass


class PasswordConfirmationError(AccountsServiceError, DomainValidationError):
    """Raised when the current password does not match."""
    pass


class CannotDeactivateSelfError(AccountsServiceError, ForbiddenError):
    """Raised when an admin tries to deactivate their own account via moderation."""
    pass
