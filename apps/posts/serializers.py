from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from apps.core.validation import TagListField
from apps.groups.models import Group

from .models import (
    Comment,
    MAX_CONTENT_LENGTH,
    MAX_MEDIA_PER_POST,
    Post,
    PostMedia,
    Visibility,
)
from .permissions import can_edit_comment, can_modify_post, can_remove_comment


def _request_user(serializer):
    request = serializer.context.get('request')
    if request and request.user.is_authenticated:
        return request.user
    return None


class PostGroupSerializer(serializers.ModelSerializer):
    """Minimal group info embedded in posts."""

    class Meta:
        model = Group
        fields = ['id', 'name', 'description']
        read_only_fields = fields


class PostMediaSerializer(serializers.ModelSerializer):

    class Meta:
        model = PostMedia
        fields = ['id', 'media_type', 'url', 'filename', 'size']
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    """Comment with the caller's interaction flags."""

    author = UserPublicSerializer(read_only=True)
    like_count = serializers.IntegerField(read_only=True)
    is_liked = serializers.SerializerMethodField()
    user_can_edit = serializers.SerializerMethodField()
    user_can_delete = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = [
            'id',
            'author',
            'content',
            'like_count',
            'is_liked',
            'user_can_edit',
            'user_can_delete',
            'is_edited',
            'edited_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_is_liked(self, obj):
        user = _request_user(self)
        return bool(user) and any(liker.pk == user.pk for liker in obj.likes.all())

    def get_user_can_edit(self, obj):
        user = _request_user(self)
        return bool(user) and can_edit_comment(obj, user)

    def get_user_can_delete(self, obj):
        user = _request_user(self)
        return bool(user) and can_remove_comment(obj.post, obj, user)


class PostListSerializer(serializers.ModelSerializer):
    """Feed entry; comments are left out."""

    author = UserPublicSerializer(read_only=True)
    group = PostGroupSerializer(read_only=True)
    media = PostMediaSerializer(many=True, read_only=True)
    is_liked = serializers.SerializerMethodField()
    user_can_edit = serializers.SerializerMethodField()
    user_can_delete = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id',
            'author',
            'group',
            'content',
            'media',
            'tags',
            'visibility',
            'like_count',
            'comment_count',
            'is_liked',
            'user_can_edit',
            'user_can_delete',
            'is_edited',
            'edited_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_is_liked(self, obj):
        if hasattr(obj, 'is_liked_flag'):
            return obj.is_liked_flag
        user = _request_user(self)
        return bool(user) and obj.is_liked_by(user)

    def get_user_can_edit(self, obj):
        user = _request_user(self)
        return bool(user) and can_modify_post(obj, user)

    def get_user_can_delete(self, obj):
        # Same rule as editing
        return self.get_user_can_edit(obj)


class PostSerializer(PostListSerializer):
    """Post detail with comments."""

    comments = CommentSerializer(many=True, read_only=True)

    class Meta(PostListSerializer.Meta):
        fields = PostListSerializer.Meta.fields + ['comments']
        read_only_fields = fields


class PostCreateSerializer(serializers.Serializer):
    """
    Input for creating a post.

    Sent as JSON, or as multipart when ``media`` files are attached.
    """

    group_id = serializers.UUIDField(required=True)
    content = serializers.CharField(max_length=MAX_CONTENT_LENGTH)
    tags = TagListField()
    visibility = serializers.ChoiceField(
        choices=Visibility.choices,
        required=False,
        default=Visibility.GROUP,
    )
    media = serializers.ListField(
        child=serializers.FileField(),
        required=False,
        allow_empty=True,
        max_length=MAX_MEDIA_PER_POST,
    )


class PostUpdateSerializer(serializers.Serializer):
    """Input for editing a post; every field optional."""

    content = serializers.CharField(required=False, max_length=MAX_CONTENT_LENGTH)
    tags = TagListField()
    visibility = serializers.ChoiceField(choices=Visibility.choices, required=False)


class CommentInputSerializer(serializers.Serializer):
    # Blank text reaches the service, which rejects it
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


class LikeResultSerializer(serializers.Serializer):
    is_liked = serializers.BooleanField()
    like_count = serializers.IntegerField()


class FeedQuerySerializer(serializers.Serializer):
    """Query parameters of the main feed."""

    group = serializers.UUIDField(source='group_id', required=False)
    author = serializers.UUIDField(source='author_id', required=False)
    ordering = serializers.CharField(required=False)
