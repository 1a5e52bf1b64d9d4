from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from apps.core.validation import TagListField

from .models import Group, GroupMembership, GroupRole, JoinRequest
from .permissions import actor_is_privileged


class GroupMemberSerializer(serializers.ModelSerializer):
    """Member information."""

    user = UserPublicSerializer(read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'user', 'role', 'joined_at']
        read_only_fields = fields


class JoinRequestSerializer(serializers.ModelSerializer):
    """Pending join request."""

    user = UserPublicSerializer(read_only=True)

    class Meta:
        model = JoinRequest
        fields = ['id', 'user', 'requested_at']
        read_only_fields = fields


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    creator = UserPublicSerializer(read_only=True)
    is_member = serializers.SerializerMethodField()
    has_pending_request = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'is_private',
            'tags',
            'creator',
            'member_count',
            'post_count',
            'is_member',
            'has_pending_request',
            'created_at',
        ]
        read_only_fields = fields

    def _user(self):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return request.user
        return None

    def get_is_member(self, obj):
        if hasattr(obj, 'is_member_flag'):
            return obj.is_member_flag
        user = self._user()
        return bool(user) and obj.has_member(user)

    def get_has_pending_request(self, obj):
        if hasattr(obj, 'has_pending_request_flag'):
            return obj.has_pending_request_flag
        user = self._user()
        return bool(user) and obj.has_pending_request(user)


class GroupSerializer(GroupListSerializer):
    """
    Group detail.

    ``pending_requests`` is only filled for callers who may review them.
    """

    members = GroupMemberSerializer(source='memberships', many=True, read_only=True)
    pending_requests = serializers.SerializerMethodField()
    member_role = serializers.SerializerMethodField()
    is_creator = serializers.SerializerMethodField()
    is_privileged = serializers.SerializerMethodField()

    class Meta(GroupListSerializer.Meta):
        fields = GroupListSerializer.Meta.fields + [
            'members',
            'pending_requests',
            'member_role',
            'is_creator',
            'is_privileged',
            'is_active',
            'updated_at',
        ]
        read_only_fields = fields

    def get_member_role(self, obj):
        user = self._user()
        return obj.get_user_role(user) if user else None

    def get_is_creator(self, obj):
        user = self._user()
        return bool(user) and obj.is_creator(user)

    def get_is_privileged(self, obj):
        user = self._user()
        return bool(user) and actor_is_privileged(obj, user)

    def get_pending_requests(self, obj):
        if not self.get_is_privileged(obj):
            return None
        return JoinRequestSerializer(obj.join_requests.all(), many=True).data


class GroupCreateSerializer(serializers.Serializer):
    """Serializer for creating groups."""

    name = serializers.CharField(min_length=2, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')
    is_private = serializers.BooleanField(required=False, default=False)
    tags = TagListField()


class GroupUpdateSerializer(serializers.Serializer):
    """Serializer for updating groups; every field optional."""

    name = serializers.CharField(required=False, min_length=2, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    is_private = serializers.BooleanField(required=False)
    tags = TagListField()


class AddMemberSerializer(serializers.Serializer):
    """Serializer for adding a member directly."""

    user_id = serializers.UUIDField(required=True)
    role = serializers.ChoiceField(
        choices=[GroupRole.MEMBER, GroupRole.MODERATOR],
        required=False,
        default=GroupRole.MEMBER,
    )


class UpdateMemberRoleSerializer(serializers.Serializer):
    """Serializer for updating member role."""

    role = serializers.ChoiceField(choices=GroupRole.choices, required=True)


class JoinResultSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['joined', 'pending'])
    message = serializers.CharField()
