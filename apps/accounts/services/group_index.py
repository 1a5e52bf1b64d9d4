"""
Maintenance of ``User.joined_groups``.

``GroupMembership`` rows are the source of truth for who belongs to a
group. ``User.joined_groups`` is a derived index kept in sync after every
membership change. Sync runs in its own savepoint: if it fails the
membership change still commits, the failure is logged and
``reconcile_group_index`` repairs the index later.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction, DatabaseError
from django.contrib.auth import get_user_model

User = get_user_model()

logger = logging.getLogger(__name__)


def add_group_reference(*, user_id: UUID, group_id: UUID) -> bool:
    """
    Record that the user belongs to the group.

    Returns:
        True if the index was updated, False if the sync failed
    """
    try:
        with transaction.atomic():
            user = User.objects.get(id=user_id)
            user.joined_groups.add(group_id)
    except (User.DoesNotExist, DatabaseError) as e:
        logger.warning(
            "Failed to add group %s to joined_groups of user %s: %s", group_id, user_id, e
        )
        return False
    return True


def remove_group_reference(*, user_id: UUID, group_id: UUID) -> bool:
    """
    Drop the group from the user's index.

    Returns:
        True if the index was updated, False if the sync failed
    """
    try:
        with transaction.atomic():
            user = User.objects.get(id=user_id)
            user.joined_groups.remove(group_id)
    except (User.DoesNotExist, DatabaseError) as e:
        logger.warning(
            "Failed to remove group %s from joined_groups of user %s: %s", group_id, user_id, e
        )
        return False
    return True


def reconcile_group_index(*, user_id: Optional[UUID] = None, dry_run: bool = False) -> int:
    """
    Rebuild ``joined_groups`` from memberships.

    Args:
        user_id: Restrict to one user (all users when None)
        dry_run: Only count drifted users

    Returns:
        Number of users whose index differed from their memberships
    """
    from apps.groups.models import GroupMembership

    users = User.objects.all()
    if user_id is not None:
        users = users.filter(id=user_id)

    fixed = 0
    for user in users.prefetch_related('joined_groups'):
        expected = set(
            GroupMembership.objects
            .filter(user=user)
            .values_list('group_id', flat=True)
        )
        actual = {group.id for group in user.joined_groups.all()}

        if expected == actual:
            continue

        fixed += 1
        logger.info(
            "User %s joined_groups drifted: missing=%d stale=%d",
            user.id, len(expected - actual), len(actual - expected)
        )
        if not dry_run:
            with transaction.atomic():
                user.joined_groups.set(expected)

    return fixed
