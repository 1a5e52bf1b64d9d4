"""
Engagement service: likes and comments.

Every operation locks the post row, then delegates to the ``Post``
methods, which keep ``like_count`` and ``comment_count`` equal to the
size of the related collections.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.posts.models import Comment, Post

from .post_management import get_locked_post

logger = logging.getLogger(__name__)


@transaction.atomic
def toggle_like(*, post_id: UUID, user: User) -> tuple[Post, bool]:
    """
    Like the post, or remove the like if it is already there.

    Returns:
        (post, liked) where liked is True if the post is now liked by user

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
    """
    post = get_locked_post(post_id)
    liked = post.toggle_like(user)
    return post, liked


@transaction.atomic
def add_comment(*, post_id: UUID, user: User, content: str) -> Comment:
    """
    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        EmptyCommentError: If content is empty after trimming
        CommentTooLongError: If content exceeds 1000 characters
    """
    post = get_locked_post(post_id)
    return post.add_comment(user, content)


@transaction.atomic
def remove_comment(*, post_id: UUID, comment_id: UUID, user: User) -> Post:
    """
    Remove a comment (comment author or post author).

    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        CommentNotFoundError: If the comment is not on the post
        NotCommentAuthorError: If user wrote neither the comment nor the post
    """
    post = get_locked_post(post_id)
    post.remove_comment(comment_id, user)
    logger.info("User %s removed comment %s from post %s", user.id, comment_id, post.id)
    return post


@transaction.atomic
def toggle_comment_like(*, post_id: UUID, comment_id: UUID, user: User) -> tuple[Comment, bool]:
    """
    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        CommentNotFoundError: If the comment is not on the post
    """
    post = get_locked_post(post_id)
    return post.toggle_comment_like(comment_id, user)


@transaction.atomic
def edit_comment(*, post_id: UUID, comment_id: UUID, user: User, content: str) -> Comment:
    """
    Raises:
        PostNotFoundError: If post doesn't exist or is inactive
        CommentNotFoundError: If the comment is not on the post
        NotCommentAuthorError: If user is not the comment author
        EmptyCommentError / CommentTooLongError: If content is invalid
    """
    post = get_locked_post(post_id)
    return post.edit_comment(comment_id, user, content)
