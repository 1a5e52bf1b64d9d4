"""
Membership management service.

Implements the per (user, group) state machine NONE -> PENDING -> MEMBER.
Every membership change also updates the affected user's
``joined_groups`` index; that sync is best-effort and never fails the
operation.
"""

import logging
from uuid import UUID

from django.db import models, transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.accounts.services import add_group_reference, remove_group_reference
from apps.groups.models import Group, GroupMembership, GroupRole
from apps.groups.permissions import actor_is_privileged

from ..exceptions import (
    GroupNotFoundError,
    InactiveUserError,
    InsufficientPermissionsError,
    InvalidRoleError,
    MemberNotFoundError,
    NotMemberError,
)
from .group_management import get_locked_group

logger = logging.getLogger(__name__)

ADDABLE_ROLES = (GroupRole.MEMBER, GroupRole.MODERATOR)


class JoinStatus(models.TextChoices):
    JOINED = 'joined', 'Joined'
    PENDING = 'pending', 'Pending'


@transaction.atomic
def request_join(*, group_id: UUID, user: User) -> JoinStatus:
    """
    Join a public group, or ask to join a private one.

    Public group: the user becomes a member immediately.
    Private group: a pending join request is queued for the group's
    admins and moderators.

    Args:
        group_id: UUID of the group
        user: User asking to join

    Returns:
        JoinStatus.JOINED or JoinStatus.PENDING

    Raises:
        GroupNotFoundError: If group doesn't exist or is inactive
        InactiveUserError: If the user's account is deactivated
        AlreadyMemberError: If user is already a member
        JoinRequestPendingError: If a request is already pending (private groups)
    """
    group = get_locked_group(group_id)

    if not user.is_active:
        raise InactiveUserError("Deactivated accounts cannot join groups")

    if group.is_private:
        group.add_join_request(user)
        logger.info("User %s requested to join group %s", user.id, group.id)
        return JoinStatus.PENDING

    group.add_member(user)
    add_group_reference(user_id=user.id, group_id=group.id)
    logger.info("User %s joined group %s", user.id, group.id)
    return JoinStatus.JOINED


@transaction.atomic
def leave_group(*, group_id: UUID, user: User) -> None:
    """
    Leave a group.

    The creator can never leave their own group.

    Raises:
        GroupNotFoundError: If group doesn't exist
        CannotRemoveCreatorError: If user is the creator
        NotMemberError: If user is not a member
    """
    group = get_locked_group(group_id)

    group.remove_member(user)
    remove_group_reference(user_id=user.id, group_id=group.id)

    logger.info("User %s left group %s", user.id, group.id)


@transaction.atomic
def add_member(
    *,
    group_id: UUID,
    user_id: UUID,
    added_by: User,
    role: str = GroupRole.MEMBER
) -> GroupMembership:
    """
    Add a user to a group directly (privileged members only).

    Args:
        group_id: UUID of the group
        user_id: UUID of the user to add
        added_by: User performing the addition
        role: 'member' or 'moderator'

    Returns:
        Created GroupMembership instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If added_by is not privileged
        InvalidRoleError: If role is not member or moderator
        MemberNotFoundError: If the user doesn't exist or is inactive
        AlreadyMemberError: If the user is already a member
    """
    group = get_locked_group(group_id)

    if not actor_is_privileged(group, added_by):
        raise InsufficientPermissionsError("Not authorized to add members to this group")

    if role not in ADDABLE_ROLES:
        raise InvalidRoleError("Role must be either member or moderator")

    try:
        new_member = User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        raise MemberNotFoundError(f"User with ID {user_id} not found")

    membership = group.add_member(new_member, role=role)
    add_group_reference(user_id=new_member.id, group_id=group.id)

    logger.info(
        "User %s added user %s to group %s as %s", added_by.id, new_member.id, group.id, role
    )
    return membership


@transaction.atomic
def remove_member(
    *,
    group_id: UUID,
    user_id: UUID,
    removed_by: User
) -> None:
    """
    Remove a member from a group (privileged members only).

    The creator can never be removed, whoever asks.

    Raises:
        GroupNotFoundError: If group doesn't exist
        CannotRemoveCreatorError: If trying to remove the creator
        InsufficientPermissionsError: If removed_by is not privileged
        NotMemberError: If target user is not a member
    """
    group = get_locked_group(group_id)

    targets_creator = str(group.creator_id) == str(user_id)

    # Creator removal is refused as CannotRemoveCreatorError for every actor
    if not targets_creator and not actor_is_privileged(group, removed_by):
        raise InsufficientPermissionsError("Not authorized to remove members from this group")

    try:
        target = User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise NotMemberError("User is not a member of this group")

    group.remove_member(target)
    remove_group_reference(user_id=target.id, group_id=group.id)

    logger.info("User %s removed user %s from group %s", removed_by.id, target.id, group.id)


def get_group_members(*, group_id: UUID) -> QuerySet[GroupMembership]:
    """
    Get all members of an active group, in join order.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id, is_active=True).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMembership.objects
        .filter(group_id=group_id)
        .select_related('user')
        .order_by('joined_at')
    )
