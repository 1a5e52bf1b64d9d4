"""
Role management service.

Handles member role updates with concurrency protection.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.groups.models import GroupMembership
from apps.groups.permissions import actor_is_privileged

from ..exceptions import InsufficientPermissionsError, NotMemberError
from .group_management import get_locked_group

logger = logging.getLogger(__name__)


@transaction.atomic
def update_member_role(
    *,
    group_id: UUID,
    user_id: UUID,
    new_role: str,
    updated_by: User
) -> GroupMembership:
    """
    Change a member's role (privileged members only).

    The group row is locked so concurrent role changes serialize.
    The creator's role is fixed to admin.

    Args:
        group_id: UUID of the group
        user_id: UUID of the member whose role to update
        new_role: 'member', 'moderator' or 'admin'
        updated_by: User performing the update

    Returns:
        Updated GroupMembership instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If updated_by is not privileged
        InvalidRoleError: If new_role is invalid
        CannotChangeCreatorRoleError: If target is the creator
        NotMemberError: If target user is not a member
    """
    group = get_locked_group(group_id)

    if not actor_is_privileged(group, updated_by):
        raise InsufficientPermissionsError("Not authorized to update member roles")

    try:
        target = User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise NotMemberError("User is not a member of this group")

    membership = group.update_member_role(target, new_role)

    logger.info(
        "User %s set role of user %s in group %s to %s",
        updated_by.id, target.id, group.id, new_role
    )
    return membership
