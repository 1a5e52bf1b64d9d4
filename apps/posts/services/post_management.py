"""
Post management service.

Handles post creation, editing, soft deletion and the feeds.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Exists, OuterRef, Prefetch, Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import get_active_user
from apps.core.exceptions import DomainValidationError
from apps.core.validation import clean_tags
from apps.groups.exceptions import GroupNotFoundError
from apps.groups.models import Group, GroupMembership
from apps.posts.models import (
    Comment,
    MAX_CONTENT_LENGTH,
    MAX_MEDIA_PER_POST,
    Post,
    PostLike,
    PostMedia,
    Visibility,
)
from apps.posts.permissions import can_modify_post

from ..exceptions import (
    InvalidPostDataError,
    MembershipRequiredError,
    NotPostAuthorError,
    PostNotFoundError,
)

logger = logging.getLogger(__name__)

ORDERING_FIELDS = ('created_at', 'like_count', 'comment_count')
DEFAULT_ORDERING = '-created_at'


def _clean_content(content: str) -> str:
    content = (content or '').strip()
    if not content:
        raise InvalidPostDataError("Post content is required")
    if len(content) > MAX_CONTENT_LENGTH:
        raise InvalidPostDataError(
            f"Post content cannot be more than {MAX_CONTENT_LENGTH} characters"
        )
    return content


def _clean_visibility(visibility: str) -> str:
    if visibility not in Visibility.values:
        raise InvalidPostDataError(f"Invalid visibility. Must be one of: {Visibility.values}")
    return visibility


def _clean_post_tags(tags) -> list:
    try:
        return clean_tags(tags)
    except DomainValidationError as e:
        raise InvalidPostDataError(str(e))


def _media_fields(item) -> dict:
    # Accepts StoredMedia or a plain dict with the same keys
    data = item.as_dict() if hasattr(item, 'as_dict') else dict(item)
    return {
        'media_type': data['media_type'],
        'url': data['url'],
        'storage_name': data['storage_name'],
        'filename': data.get('filename', ''),
        'size': data.get('size', 0),
    }


def clean_ordering(ordering: Optional[str]) -> str:
    """
    Validate a feed ordering such as ``created_at`` or ``-like_count``.

    Raises:
        InvalidPostDataError: If the field is not sortable
    """
    if not ordering:
        return DEFAULT_ORDERING
    if ordering.lstrip('-') not in ORDERING_FIELDS:
        raise InvalidPostDataError(f"Invalid ordering. Must be one of: {list(ORDERING_FIELDS)}")
    return ordering


def get_locked_post(post_id: UUID) -> Post:
    """
    Fetch an active post with a row lock.

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
    """
    try:
        return Post.objects.select_for_update().get(id=post_id, is_active=True)
    except Post.DoesNotExist:
        raise PostNotFoundError("Post not found")


def can_view_group_posts(group: Group, user: User) -> bool:
    return user.is_system_admin or group.has_member(user)


@transaction.atomic
def create_post(
    *,
    author: User,
    group_id: UUID,
    content: str,
    media: Optional[list] = None,
    tags: Optional[list] = None,
    visibility: str = Visibility.GROUP
) -> Post:
    """
    Create a post in a group.

    The author must be a member of the group or a system admin. The
    group's ``post_count`` is recomputed afterwards.

    Args:
        author: User creating the post
        group_id: UUID of the target group
        content: Post text (1-2000 chars after trimming)
        media: Stored media references (``StoredMedia`` or dicts), at most 5
        tags: Tags, each at most 30 chars
        visibility: public / group / private

    Returns:
        Created Post instance

    Raises:
        GroupNotFoundError: If group doesn't exist or is inactive
        MembershipRequiredError: If author is neither member nor system admin
        InvalidPostDataError: If any field fails validation
    """
    try:
        group = Group.objects.select_for_update().get(id=group_id, is_active=True)
    except Group.DoesNotExist:
        raise GroupNotFoundError("Group not found")

    if not can_view_group_posts(group, author):
        raise MembershipRequiredError("You must be a member of the group to post")

    media = list(media or [])
    if len(media) > MAX_MEDIA_PER_POST:
        raise InvalidPostDataError(f"A post can have at most {MAX_MEDIA_PER_POST} media files")

    post = Post.objects.create(
        author=author,
        group=group,
        content=_clean_content(content),
        tags=_clean_post_tags(tags),
        visibility=_clean_visibility(visibility),
    )

    PostMedia.objects.bulk_create([
        PostMedia(post=post, position=position, **_media_fields(item))
        for position, item in enumerate(media)
    ])

    group.refresh_post_count()

    logger.info("User %s created post %s in group %s", author.id, post.id, group.id)
    return post


def get_post_by_id(*, post_id: UUID) -> Post:
    """
    Retrieve an active post with its media, likes and comments.

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
    """
    try:
        return (
            Post.objects
            .select_related('author', 'group')
            .prefetch_related(
                'media',
                'likes',
                Prefetch(
                    'comments',
                    queryset=Comment.objects.select_related('author').prefetch_related('likes'),
                ),
            )
            .get(id=post_id, is_active=True)
        )
    except Post.DoesNotExist:
        raise PostNotFoundError("Post not found")


@transaction.atomic
def update_post(
    *,
    post_id: UUID,
    user: User,
    content: Optional[str] = None,
    tags: Optional[list] = None,
    visibility: Optional[str] = None
) -> Post:
    """
    Edit a post (author or system admin only).

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        NotPostAuthorError: If user may not edit the post
        InvalidPostDataError: If a field fails validation
    """
    post = get_locked_post(post_id)

    if not can_modify_post(post, user):
        raise NotPostAuthorError("Not authorized to update this post")

    if content is not None:
        post.content = _clean_content(content)
    if tags is not None:
        post.tags = _clean_post_tags(tags)
    if visibility is not None:
        post.visibility = _clean_visibility(visibility)

    post.is_edited = True
    post.edited_at = timezone.now()
    post.save()

    return post


@transaction.atomic
def delete_post(*, post_id: UUID, user: User) -> None:
    """
    Soft-delete a post (author or system admin only).

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        NotPostAuthorError: If user may not delete the post
    """
    # Group before post, the order used by create_post and delete_group
    group_id = (
        Post.objects
        .filter(id=post_id, is_active=True)
        .values_list('group_id', flat=True)
        .first()
    )
    if group_id is None:
        raise PostNotFoundError("Post not found")

    group = Group.objects.select_for_update().get(id=group_id)
    post = get_locked_post(post_id)

    if not can_modify_post(post, user):
        raise NotPostAuthorError("Not authorized to delete this post")

    post.is_active = False
    post.save(update_fields=['is_active', 'updated_at'])

    group.refresh_post_count()

    logger.info("User %s deleted post %s", user.id, post.id)


def list_posts(
    *,
    user: User,
    group_id: Optional[UUID] = None,
    author_id: Optional[UUID] = None,
    ordering: Optional[str] = None
) -> QuerySet[Post]:
    """
    Active posts of active groups, optionally filtered by group and author.

    Posts of private groups are only listed for their members (system
    admins see everything). Each post carries ``is_liked_flag`` for the
    given user.

    Raises:
        InvalidPostDataError: If ordering is not supported
    """
    queryset = (
        Post.objects
        .filter(is_active=True, group__is_active=True)
        .select_related('author', 'group')
        .prefetch_related('media')
        .annotate(
            is_liked_flag=Exists(
                PostLike.objects.filter(post=OuterRef('pk'), user=user)
            )
        )
    )

    if not user.is_system_admin:
        member_of = GroupMembership.objects.filter(user=user).values('group_id')
        queryset = queryset.filter(Q(group__is_private=False) | Q(group_id__in=member_of))

    if group_id:
        queryset = queryset.filter(group_id=group_id)

    if author_id:
        queryset = queryset.filter(author_id=author_id)

    return queryset.order_by(clean_ordering(ordering), '-created_at')


def get_group_feed(*, group_id: UUID, user: User, ordering: Optional[str] = None) -> QuerySet[Post]:
    """
    Posts of one group. Requires membership or system admin.

    Raises:
        GroupNotFoundError: If group doesn't exist or is inactive
        MembershipRequiredError: If user may not read the group
    """
    try:
        group = Group.objects.get(id=group_id, is_active=True)
    except Group.DoesNotExist:
        raise GroupNotFoundError("Group not found")

    if not can_view_group_posts(group, user):
        raise MembershipRequiredError("You must be a member of the group to view its posts")

    return list_posts(user=user, group_id=group.id, ordering=ordering)


def get_user_feed(*, user_id: UUID, viewer: User, ordering: Optional[str] = None) -> QuerySet[Post]:
    """
    Posts written by one user, as visible to the viewer.

    Raises:
        UserNotFoundError: If the author doesn't exist or is inactive
    """
    author = get_active_user(user_id=user_id)
    return list_posts(user=viewer, author_id=author.id, ordering=ordering)
