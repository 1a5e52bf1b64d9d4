from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import User
from .services import is_institution_email


class JoinedGroupSerializer(serializers.Serializer):
    """Group entry of a user's joined_groups index."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    member_count = serializers.IntegerField(read_only=True)


class UserSerializer(serializers.ModelSerializer):
    """Full profile of the current user."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'bio',
            'graduation_year',
            'avatar_url',
            'role',
            'is_active',
            'created_at',
            'last_login',
            'last_active',
        ]
        read_only_fields = fields


class CurrentUserSerializer(UserSerializer):
    """Profile plus the user's joined groups."""

    joined_groups = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['joined_groups']
        read_only_fields = fields

    def get_joined_groups(self, obj):
        groups = obj.joined_groups.filter(is_active=True).order_by('name')
        return JoinedGroupSerializer(groups, many=True).data


class UserPublicSerializer(serializers.ModelSerializer):
    """Public user info (for displaying in groups, posts, comments)."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'avatar_url']
        read_only_fields = fields


class UserAdminSerializer(serializers.ModelSerializer):
    """User listing for system admins."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'bio',
            'graduation_year',
            'avatar_url',
            'role',
            'is_active',
            'created_at',
            'last_active',
        ]
        read_only_fields = fields


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    name = serializers.CharField(min_length=2, max_length=50, trim_whitespace=True)
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    graduation_year = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=2020,
        max_value=2030,
    )

    def validate_email(self, value):
        value = value.strip().lower()
        if not is_institution_email(value):
            raise serializers.ValidationError(
                f'Only @{settings.INSTITUTION_EMAIL_DOMAIN} email addresses are allowed'
            )
        return value


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class ProfileUpdateSerializer(serializers.Serializer):
    """Editable profile fields."""

    name = serializers.CharField(required=False, min_length=2, max_length=50)
    bio = serializers.CharField(required=False, allow_blank=True, max_length=500)
    graduation_year = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=2020,
        max_value=2030,
    )


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(required=True, style={'input_type': 'password'})
    new_password = serializers.CharField(
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )


class AvatarUploadSerializer(serializers.Serializer):
    avatar = serializers.FileField(required=True)


class SetActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField(required=True)
