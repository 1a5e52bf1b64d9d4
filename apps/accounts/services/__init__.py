"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    InstitutionEmailRequiredError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    PasswordConfirmationError,
    CannotDeactivateSelfError,
)
from .user_registration import register_user, is_institution_email
from .user_authentication import authenticate_user
from .account_management import (
    update_profile,
    change_password,
    update_avatar,
    deactivate_account,
    set_user_active,
    search_users,
    get_active_user,
)
from .group_index import (
    add_group_reference,
    remove_group_reference,
    reconcile_group_index,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'InstitutionEmailRequiredError',
    'EmailAlreadyRegisteredError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'UserNotFoundError',
    'PasswordConfirmationError',
    'CannotDeactivateSelfError',
    # Services
    'register_user',
    'is_institution_email',
    'authenticate_user',
    'update_profile',
    'change_password',
    'update_avatar',
    'deactivate_account',
    'set_user_active',
    'search_users',
    'get_active_user',
    'add_group_reference',
    'remove_group_reference',
    'reconcile_group_index',
]
