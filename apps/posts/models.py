# ==========================================
# apps/posts/models.py
# ==========================================

from django.db import models
from django.utils import timezone
import uuid

from .exceptions import (
    CommentNotFoundError,
    CommentTooLongError,
    EmptyCommentError,
    NotCommentAuthorError,
)

MAX_CONTENT_LENGTH = 2000
MAX_COMMENT_LENGTH = 1000
MAX_MEDIA_PER_POST = 5


class Visibility(models.TextChoices):
    PUBLIC = 'public', 'Public'
    GROUP = 'group', 'Group'
    PRIVATE = 'private', 'Private'


class MediaType(models.TextChoices):
    IMAGE = 'image', 'Image'
    VIDEO = 'video', 'Video'


def clean_comment_content(content: str) -> str:
    """
    Trim comment text and check its length.

    Raises:
        EmptyCommentError: If nothing is left after trimming
        CommentTooLongError: If longer than MAX_COMMENT_LENGTH
    """
    content = (content or '').strip()
    if not content:
        raise EmptyCommentError("Comment content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise CommentTooLongError(
            f"Comment cannot be more than {MAX_COMMENT_LENGTH} characters"
        )
    return content


class Post(models.Model):
    """
    Post in a group.

    Owns its media, likes and comments. Engagement changes go through the
    methods below, and each of them recomputes ``like_count`` and
    ``comment_count`` from the related rows so the counters always match
    the collections. Callers lock the row (``select_for_update``) first.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    author = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='posts')
    group = models.ForeignKey('groups.Group', on_delete=models.CASCADE, related_name='posts')
    content = models.TextField(max_length=MAX_CONTENT_LENGTH)
    tags = models.JSONField(default=list, blank=True)
    visibility = models.CharField(max_length=10, choices=Visibility.choices, default=Visibility.GROUP)

    # Derived from likes / comments
    like_count = models.PositiveIntegerField(default=0)
    comment_count = models.PositiveIntegerField(default=0)

    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'posts'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='posts_group_created_idx'),
            models.Index(fields=['author', 'created_at'], name='posts_author_created_idx'),
            models.Index(fields=['is_active', 'created_at'], name='posts_active_created_idx'),
            models.Index(fields=['like_count'], name='posts_like_count_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.author.get_display_name()}: {self.content[:50]}"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_liked_by(self, user) -> bool:
        return self.likes.filter(user=user).exists()

    def get_comment(self, comment_id) -> 'Comment':
        try:
            return self.comments.get(id=comment_id)
        except Comment.DoesNotExist:
            raise CommentNotFoundError("Comment not found")

    # ------------------------------------------------------------------
    # Engagement mutations
    # ------------------------------------------------------------------

    def toggle_like(self, user) -> bool:
        """
        Flip the user's like.

        Returns:
            True if the post is now liked by the user
        """
        deleted, _ = self.likes.filter(user=user).delete()
        if not deleted:
            PostLike.objects.create(post=self, user=user)
        self.recompute_engagement()
        return not deleted

    def add_comment(self, author, content) -> 'Comment':
        """
        Append a comment.

        Raises:
            EmptyCommentError: If content is empty after trimming
            CommentTooLongError: If content is too long
        """
        comment = Comment.objects.create(
            post=self,
            author=author,
            content=clean_comment_content(content),
        )
        self.recompute_engagement()
        return comment

    def remove_comment(self, comment_id, user) -> None:
        """
        Remove a comment. Allowed for the comment author and the post author.

        Raises:
            CommentNotFoundError: If the comment is not on this post
            NotCommentAuthorError: If user wrote neither the comment nor the post
        """
        comment = self.get_comment(comment_id)

        if user.id not in (comment.author_id, self.author_id):
            raise NotCommentAuthorError("Not authorized to delete this comment")

        comment.delete()
        self.recompute_engagement()

    def toggle_comment_like(self, comment_id, user) -> tuple['Comment', bool]:
        """
        Flip the user's like on a comment.

        Returns:
            (comment, liked) where liked is True if the comment is now liked

        Raises:
            CommentNotFoundError: If the comment is not on this post
        """
        comment = self.get_comment(comment_id)

        if comment.likes.filter(pk=user.pk).exists():
            comment.likes.remove(user)
            return comment, False

        comment.likes.add(user)
        return comment, True

    def edit_comment(self, comment_id, user, content) -> 'Comment':
        """
        Replace a comment's text. Only its author may do so.

        Raises:
            CommentNotFoundError: If the comment is not on this post
            NotCommentAuthorError: If user is not the comment author
            EmptyCommentError / CommentTooLongError: If content is invalid
        """
        comment = self.get_comment(comment_id)

        if comment.author_id != user.id:
            raise NotCommentAuthorError("Not authorized to edit this comment")

        comment.content = clean_comment_content(content)
        comment.is_edited = True
        comment.edited_at = timezone.now()
        comment.save(update_fields=['content', 'is_edited', 'edited_at'])
        return comment

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def recompute_engagement(self) -> None:
        self.like_count = self.likes.count()
        self.comment_count = self.comments.count()
        self.save(update_fields=['like_count', 'comment_count', 'updated_at'])


class PostMedia(models.Model):
    """Reference to a stored image or video attached to a post."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='media')
    media_type = models.CharField(max_length=10, choices=MediaType.choices)
    url = models.CharField(max_length=500)
    storage_name = models.CharField(max_length=255)
    filename = models.CharField(max_length=255, blank=True)
    size = models.PositiveBigIntegerField(default=0)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = 'post_media'
        ordering = ['position']

    def __str__(self):
        return f"{self.media_type}: {self.filename or self.storage_name}"


class PostLike(models.Model):
    """A user's like on a post."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='likes')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='post_likes')
    liked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'post_likes'
        unique_together = [['post', 'user']]
        ordering = ['liked_at']

    def __str__(self):
        return f"{self.user.get_display_name()} likes {self.post_id}"


class Comment(models.Model):
    """Comment on a post, with its own set of liking users."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='comments')
    content = models.TextField(max_length=MAX_COMMENT_LENGTH)
    likes = models.ManyToManyField('accounts.User', blank=True, related_name='liked_comments')
    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'post_comments'
        indexes = [
            models.Index(fields=['post', 'created_at'], name='comments_post_created_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.author.get_display_name()}: {self.content[:50]}"

    @property
    def like_count(self) -> int:
        return len(self.likes.all())
