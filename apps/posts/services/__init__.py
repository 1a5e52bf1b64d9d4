"""Services for posts business logic."""

from ..exceptions import (
    PostsServiceError,
    PostNotFoundError,
    CommentNotFoundError,
    InvalidPostDataError,
    EmptyCommentError,
    CommentTooLongError,
    MembershipRequiredError,
    NotPostAuthorError,
    NotCommentAuthorError,
)
from .post_management import (
    create_post,
    update_post,
    delete_post,
    get_post_by_id,
    get_locked_post,
    list_posts,
    get_group_feed,
    get_user_feed,
    clean_ordering,
)
from .engagement import (
    toggle_like,
    add_comment,
    remove_comment,
    toggle_comment_like,
    edit_comment,
)

__all__ = [
    # Exceptions
    'PostsServiceError',
    'PostNotFoundError',
    'CommentNotFoundError',
    'InvalidPostDataError',
    'EmptyCommentError',
    'CommentTooLongError',
    'MembershipRequiredError',
    'NotPostAuthorError',
    'NotCommentAuthorError',
    # Posts
    'create_post',
    'update_post',
    'delete_post',
    'get_post_by_id',
    'get_locked_post',
    'list_posts',
    'get_group_feed',
    'get_user_feed',
    'clean_ordering',
    # Engagement
    'toggle_like',
    'add_comment',
    'remove_comment',
    'toggle_comment_like',
    'edit_comment',
]
