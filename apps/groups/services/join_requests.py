"""
Join request service.

Privileged members (admins, moderators, the creator, system admins)
review pending requests of private groups.
"""

import logging
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.accounts.services import add_group_reference
from apps.groups.models import GroupMembership, JoinRequest
from apps.groups.permissions import actor_is_privileged

from ..exceptions import InsufficientPermissionsError, JoinRequestNotFoundError
from .group_management import get_group_by_id, get_locked_group

logger = logging.getLogger(__name__)


def _get_requester(user_id: UUID) -> User:
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise JoinRequestNotFoundError("No pending request for this user")


def list_join_requests(*, group_id: UUID, user: User) -> QuerySet[JoinRequest]:
    """
    Pending requests of a group, oldest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not privileged
    """
    group = get_group_by_id(group_id=group_id)

    if not actor_is_privileged(group, user):
        raise InsufficientPermissionsError("Not authorized to view join requests")

    return group.join_requests.select_related('user').order_by('requested_at')


@transaction.atomic
def approve_request(*, group_id: UUID, user_id: UUID, approved_by: User) -> GroupMembership:
    """
    Approve a pending request: PENDING -> MEMBER with role 'member'.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If approved_by is not privileged
        JoinRequestNotFoundError: If no request is pending for the user
    """
    group = get_locked_group(group_id)

    if not actor_is_privileged(group, approved_by):
        raise InsufficientPermissionsError("Not authorized to approve join requests")

    requester = _get_requester(user_id)
    membership = group.approve_join_request(requester)
    add_group_reference(user_id=requester.id, group_id=group.id)

    logger.info(
        "User %s approved join request of user %s for group %s",
        approved_by.id, requester.id, group.id
    )
    return membership


@transaction.atomic
def reject_request(*, group_id: UUID, user_id: UUID, rejected_by: User) -> None:
    """
    Reject a pending request: PENDING -> NONE.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If rejected_by is not privileged
        JoinRequestNotFoundError: If no request is pending for the user
    """
    group = get_locked_group(group_id)

    if not actor_is_privileged(group, rejected_by):
        raise InsufficientPermissionsError("Not authorized to reject join requests")

    requester = _get_requester(user_id)
    group.reject_join_request(requester)

    logger.info(
        "User %s rejected join request of user %s for group %s",
        rejected_by.id, requester.id, group.id
    )
