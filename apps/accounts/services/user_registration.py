"""User registration service."""

import logging
from typing import Optional

from django.conf import settings
from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import EmailAlreadyRegisteredError, InstitutionEmailRequiredError

User = get_user_model()

logger = logging.getLogger(__name__)


def is_institution_email(email: str) -> bool:
    """Return True if the address belongs to the configured institution domain."""
    domain = settings.INSTITUTION_EMAIL_DOMAIN.lower().lstrip('@')
    return email.strip().lower().endswith(f'@{domain}')


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    name: str,
    graduation_year: Optional[int] = None
) -> User:
    """
    Register a new user.

    Args:
        email: Institutional email address
        password: User's password (will be hashed)
        name: Full name
        graduation_year: Optional graduation year

    Returns:
        Created User instance

    Raises:
        InstitutionEmailRequiredError: If email is outside the institution domain
        EmailAlreadyRegisteredError: If the email is taken
    """
    email = email.strip().lower()

    if not is_institution_email(email):
        raise InstitutionEmailRequiredError(
            f"Only @{settings.INSTITUTION_EMAIL_DOMAIN} email addresses are allowed"
        )

    if User.objects.filter(email=email).exists():
        raise EmailAlreadyRegisteredError("User already exists with this email")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name.strip(),
            graduation_year=graduation_year,
        )
    except IntegrityError:
        raise EmailAlreadyRegisteredError("User already exists with this email")

    logger.info("Registered user %s", user.id)
    return user
