def can_modify_post(post, user) -> bool:
    """Authors and system admins may edit or delete a post."""
    return post.author_id == user.id or user.is_system_admin


def can_remove_comment(post, comment, user) -> bool:
    return user.id in (comment.author_id, post.author_id)


def can_edit_comment(comment, user) -> bool:
    return comment.author_id == user.id
