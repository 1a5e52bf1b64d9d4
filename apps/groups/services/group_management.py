"""
Group management service.

Handles group CRUD operations with proper transaction safety.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Exists, OuterRef, Prefetch, Q, QuerySet

from apps.accounts.models import User
from apps.accounts.services import add_group_reference
from apps.core.exceptions import DomainValidationError
from apps.core.validation import clean_tags
from apps.groups.models import Group, GroupMembership, GroupRole, JoinRequest
from apps.groups.permissions import actor_is_privileged, can_delete_group

from ..exceptions import (
    GroupNotFoundError,
    InsufficientPermissionsError,
    InvalidGroupDataError,
)

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    name = (name or '').strip()
    if not 2 <= len(name) <= 100:
        raise InvalidGroupDataError("Group name must be between 2 and 100 characters")
    return name


def _clean_description(description: str) -> str:
    description = (description or '').strip()
    if len(description) > 500:
        raise InvalidGroupDataError("Description cannot be more than 500 characters")
    return description


def _clean_group_tags(tags) -> list:
    try:
        return clean_tags(tags)
    except DomainValidationError as e:
        raise InvalidGroupDataError(str(e))


def get_locked_group(group_id: UUID) -> Group:
    """
    Load an active group and lock its row for the current transaction.

    Raises:
        GroupNotFoundError: If group doesn't exist or is inactive
    """
    try:
        return (
            Group.objects
            .select_for_update()
            .get(id=group_id, is_active=True)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


@transaction.atomic
def create_group(
    *,
    name: str,
    creator: User,
    description: str = '',
    is_private: bool = False,
    tags: Optional[list] = None
) -> Group:
    """
    Create a new group with the creator as its first (admin) member.

    This is a multi-step operation wrapped in a transaction:
    1. Create the group
    2. Create the creator's admin membership
    3. Index the group on the creator's joined_groups

    Args:
        name: Group name (2-100 characters)
        creator: User who owns the group
        description: Optional description (max 500 characters)
        is_private: Whether joining requires approval
        tags: Optional list of tags (max 30 characters each)

    Returns:
        Created Group instance

    Raises:
        InvalidGroupDataError: If name, description or tags are invalid
    """
    group = Group.objects.create(
        name=_clean_name(name),
        description=_clean_description(description),
        creator=creator,
        is_private=is_private,
        tags=_clean_group_tags(tags),
    )

    GroupMembership.objects.create(
        user=creator,
        group=group,
        role=GroupRole.ADMIN,
    )
    group.refresh_member_count()

    add_group_reference(user_id=creator.id, group_id=group.id)

    logger.info("User %s created group %s (private=%s)", creator.id, group.id, is_private)
    return group


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get an active group by ID with optimized queries.

    Raises:
        GroupNotFoundError: If group doesn't exist or is inactive
    """
    try:
        return (
            Group.objects
            .select_related('creator')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMembership.objects.select_related('user')
                ),
                Prefetch(
                    'join_requests',
                    queryset=JoinRequest.objects.select_related('user')
                ),
            )
            .get(id=group_id, is_active=True)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def list_groups(*, user: User, search: Optional[str] = None) -> QuerySet[Group]:
    """
    Active groups, newest first, annotated with the caller's relationship.

    Each group carries ``is_member_flag`` and ``has_pending_request_flag``.
    ``search`` matches name, description or tags (case-insensitive).
    """
    queryset = (
        Group.objects
        .active()
        .select_related('creator')
        .annotate(
            is_member_flag=Exists(
                GroupMembership.objects.filter(group=OuterRef('pk'), user=user)
            ),
            has_pending_request_flag=Exists(
                JoinRequest.objects.filter(group=OuterRef('pk'), user=user)
            ),
        )
        .order_by('-created_at')
    )

    if search:
        search = search.strip()
        queryset = queryset.filter(
            Q(name__icontains=search)
            | Q(description__icontains=search)
            | Q(tags__icontains=search)
        )

    return queryset


def get_user_groups(*, user: User) -> QuerySet[Group]:
    """Active groups where the user holds a membership."""
    return (
        Group.objects
        .active()
        .filter(memberships__user=user)
        .select_related('creator')
        .distinct()
        .order_by('name')
    )


@transaction.atomic
def update_group(
    *,
    group_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_private: Optional[bool] = None,
    tags: Optional[list] = None
) -> Group:
    """
    Update group details (privileged members only).

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not privileged
        InvalidGroupDataError: If a field fails validation
    """
    group = get_locked_group(group_id)

    if not actor_is_privileged(group, user):
        raise InsufficientPermissionsError("Not authorized to update this group")

    update_fields = ['updated_at']

    if name is not None:
        group.name = _clean_name(name)
        update_fields.append('name')

    if description is not None:
        group.description = _clean_description(description)
        update_fields.append('description')

    if is_private is not None:
        group.is_private = is_private
        update_fields.append('is_private')

    if tags is not None:
        group.tags = _clean_group_tags(tags)
        update_fields.append('tags')

    group.save(update_fields=update_fields)

    return group


def deactivate_group_posts(group: Group) -> int:
    """
    Cascade a group soft delete to its posts.

    Returns:
        Number of posts deactivated
    """
    count = group.posts.filter(is_active=True).update(is_active=False)
    group.refresh_post_count()
    return count


@transaction.atomic
def delete_group(*, group_id: UUID, user: User) -> int:
    """
    Soft-delete a group (creator or system admin only).

    The group is marked inactive, then all of its posts are deactivated.
    Memberships are kept so the group can be restored.

    Returns:
        Number of posts deactivated by the cascade

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is neither creator nor system admin
    """
    group = get_locked_group(group_id)

    if not can_delete_group(group, user):
        raise InsufficientPermissionsError("Not authorized to delete this group")

    group.is_active = False
    group.save(update_fields=['is_active', 'updated_at'])

    deactivated = deactivate_group_posts(group)

    logger.info(
        "User %s deleted group %s; deactivated %d post(s)", user.id, group.id, deactivated
    )
    return deactivated
