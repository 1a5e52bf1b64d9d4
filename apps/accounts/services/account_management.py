"""Account management service: profile, password, avatar, activation."""

import logging
from typing import Optional
from uuid import UUID

from django.db import DatabaseError, transaction
from django.db.models import Q, QuerySet
from django.contrib.auth import get_user_model

from apps.core.media import MediaStorage

from .exceptions import (
    PasswordConfirmationError,
    UserNotFoundError,
    CannotDeactivateSelfError,
)

User = get_user_model()

logger = logging.getLogger(__name__)

_UNSET = object()


@transaction.atomic
def update_profile(
    *,
    user: User,
    name: Optional[str] = None,
    bio: Optional[str] = None,
    graduation_year=_UNSET
) -> User:
    """
    Update editable profile fields. Fields left as None are unchanged.

    ``graduation_year`` may be explicitly set to None to clear it.
    """
    user = User.objects.select_for_update().get(id=user.id)
    update_fields = []

    if name is not None:
        user.name = name.strip()
        update_fields.append('name')

    if bio is not None:
        user.bio = bio.strip()
        update_fields.append('bio')

    if graduation_year is not _UNSET:
        user.graduation_year = graduation_year
        update_fields.append('graduation_year')

    if update_fields:
        user.save(update_fields=update_fields)

    return user


@transaction.atomic
def change_password(*, user: User, current_password: str, new_password: str) -> None:
    """
    Change the user's password after verifying the current one.

    Raises:
        PasswordConfirmationError: If current password is incorrect
    """
    user = User.objects.select_for_update().get(id=user.id)

    if not user.check_password(current_password):
        raise PasswordConfirmationError("Current password is incorrect")

    user.set_password(new_password)
    user.save(update_fields=['password'])


def update_avatar(*, user: User, uploaded_file, storage: Optional[MediaStorage] = None) -> User:
    """
    Store a new avatar and drop the previous one.

    The old file is deleted after the new reference is saved; a failed
    delete only leaves an orphaned file behind.
    """
    storage = storage or MediaStorage()
    stored = storage.store(uploaded_file)

    try:
        with transaction.atomic():
            user = User.objects.select_for_update().get(id=user.id)
            previous = user.avatar_name
            user.avatar_url = stored.url
            user.avatar_name = stored.storage_name
            user.save(update_fields=['avatar_url', 'avatar_name'])
    except (User.DoesNotExist, DatabaseError):
        storage.delete_many([stored.storage_name])
        raise

    if previous:
        storage.delete_many([previous])

    return user


@transaction.atomic
def deactivate_account(*, user: User) -> None:
    """Soft-disable the caller's own account."""
    user = User.objects.select_for_update().get(id=user.id)
    user.deactivate()
    logger.info("User %s deactivated their account", user.id)


@transaction.atomic
def set_user_active(*, user_id: UUID, is_active: bool, performed_by: User) -> User:
    """
    Activate or deactivate another account (system admin moderation).

    Raises:
        UserNotFoundError: If the user doesn't exist
        CannotDeactivateSelfError: If the admin targets their own account
    """
    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")

    if user.id == performed_by.id and not is_active:
        raise CannotDeactivateSelfError("Admins cannot deactivate their own account")

    user.is_active = is_active
    user.save(update_fields=['is_active'])

    logger.info(
        "Admin %s set user %s active=%s", performed_by.id, user.id, is_active
    )
    return user


def search_users(*, search: Optional[str] = None) -> QuerySet:
    """Active users, newest first, optionally filtered by name or email."""
    queryset = User.objects.active().order_by('-created_at')
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
    return queryset


def get_active_user(*, user_id: UUID) -> User:
    """
    Raises:
        UserNotFoundError: If the user doesn't exist or is inactive
    """
    try:
        return User.objects.active().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")
