# ==========================================
# apps/groups/models.py
# ==========================================

from django.db import models
from django.utils import timezone
import uuid

from .exceptions import (
    AlreadyMemberError,
    CannotChangeCreatorRoleError,
    CannotRemoveCreatorError,
    InvalidRoleError,
    JoinRequestNotFoundError,
    JoinRequestPendingError,
    NotMemberError,
)


class GroupRole(models.TextChoices):
    MEMBER = 'member', 'Member'
    MODERATOR = 'moderator', 'Moderator'
    ADMIN = 'admin', 'Admin'


class ActiveGroupManager(models.Manager):
    def active(self):
        return self.filter(is_active=True)


class Group(models.Model):
    """
    Student group.

    Owns its membership list and its pending join requests. All changes
    to either go through the methods below so the invariants hold in one
    place:

    - the creator is always a member with role ``admin`` and can never be
      removed or demoted;
    - a user is never both a member and a pending requester;
    - ``member_count`` always equals the number of memberships.

    Callers lock the row (``select_for_update``) before mutating.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True, default='')
    creator = models.ForeignKey('accounts.User', on_delete=models.PROTECT, related_name='created_groups')
    is_private = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)

    # Denormalized counters, recomputed from the related rows
    member_count = models.PositiveIntegerField(default=0)
    post_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveGroupManager()

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['creator', 'created_at'], name='groups_creator_created_idx'),
            models.Index(fields=['is_active', 'created_at'], name='groups_active_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_creator(self, user) -> bool:
        return self.creator_id == user.id

    def has_member(self, user) -> bool:
        return self.memberships.filter(user=user).exists()

    def has_pending_request(self, user) -> bool:
        return self.join_requests.filter(user=user).exists()

    def get_user_role(self, user):
        try:
            return self.memberships.get(user=user).role
        except GroupMembership.DoesNotExist:
            return None

    # ------------------------------------------------------------------
    # Membership mutations
    # ------------------------------------------------------------------

    def add_member(self, user, role=GroupRole.MEMBER) -> 'GroupMembership':
        """
        Append a membership.

        A pending request of the same user is consumed, so the user never
        ends up both pending and member.

        Raises:
            AlreadyMemberError: If the user is already a member
            InvalidRoleError: If role is not a GroupRole value
        """
        if role not in GroupRole.values:
            raise InvalidRoleError(f"Invalid role. Must be one of: {GroupRole.values}")

        if self.has_member(user):
            raise AlreadyMemberError(f"User is already a member of {self.name}")

        self.join_requests.filter(user=user).delete()
        membership = GroupMembership.objects.create(group=self, user=user, role=role)
        self.refresh_member_count()
        return membership

    def add_join_request(self, user) -> 'JoinRequest':
        """
        Queue a join request.

        Raises:
            AlreadyMemberError: If the user is already a member
            JoinRequestPendingError: If a request is already pending
        """
        if self.has_member(user):
            raise AlreadyMemberError(f"User is already a member of {self.name}")
        if self.has_pending_request(user):
            raise JoinRequestPendingError("Join request already pending")

        return JoinRequest.objects.create(group=self, user=user)

    def approve_join_request(self, user) -> 'GroupMembership':
        """
        Move a pending requester into the member list with role ``member``.

        Raises:
            JoinRequestNotFoundError: If no request is pending for the user
        """
        deleted, _ = self.join_requests.filter(user=user).delete()
        if not deleted:
            raise JoinRequestNotFoundError("No pending request for this user")

        membership, _ = GroupMembership.objects.get_or_create(
            group=self,
            user=user,
            defaults={'role': GroupRole.MEMBER},
        )
        self.refresh_member_count()
        return membership

    def reject_join_request(self, user) -> None:
        """
        Drop a pending request.

        Raises:
            JoinRequestNotFoundError: If no request is pending for the user
        """
        deleted, _ = self.join_requests.filter(user=user).delete()
        if not deleted:
            raise JoinRequestNotFoundError("No pending request for this user")

    def remove_member(self, user) -> None:
        """
        Remove a membership.

        Raises:
            CannotRemoveCreatorError: If user is the creator
            NotMemberError: If user is not a member
        """
        if self.is_creator(user):
            raise CannotRemoveCreatorError("Cannot remove the group creator")

        deleted, _ = self.memberships.filter(user=user).delete()
        if not deleted:
            raise NotMemberError(f"User is not a member of {self.name}")

        self.refresh_member_count()

    def update_member_role(self, user, role) -> 'GroupMembership':
        """
        Change a member's role.

        Raises:
            InvalidRoleError: If role is not a GroupRole value
            CannotChangeCreatorRoleError: If user is the creator
            NotMemberError: If user is not a member
        """
        if role not in GroupRole.values:
            raise InvalidRoleError(f"Invalid role. Must be one of: {GroupRole.values}")

        if self.is_creator(user):
            raise CannotChangeCreatorRoleError("Cannot change the group creator's role")

        try:
            membership = self.memberships.get(user=user)
        except GroupMembership.DoesNotExist:
            raise NotMemberError(f"User is not a member of {self.name}")

        membership.role = role
        membership.save(update_fields=['role'])
        return membership

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def refresh_member_count(self) -> int:
        self.member_count = self.memberships.count()
        self.save(update_fields=['member_count', 'updated_at'])
        return self.member_count

    def refresh_post_count(self) -> int:
        self.post_count = self.posts.filter(is_active=True).count()
        self.save(update_fields=['post_count', 'updated_at'])
        return self.post_count


class GroupMembership(models.Model):
    """User membership in a group with role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_memberships')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=GroupRole.choices, default=GroupRole.MEMBER)
    joined_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'group_memberships'
        unique_together = [['user', 'group']]
        indexes = [
            models.Index(fields=['group', 'role'], name='membership_group_role_idx'),
            models.Index(fields=['user', 'joined_at'], name='membership_user_joined_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.group.name} ({self.role})"

    def save(self, *args, **kwargs):
        # The creator is always an admin of their group
        if self.group.creator_id == self.user_id:
            self.role = GroupRole.ADMIN
        super().save(*args, **kwargs)


class JoinRequest(models.Model):
    """Pending request to join a private group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='join_requests')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='join_requests')
    requested_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'group_join_requests'
        unique_together = [['user', 'group']]
        ordering = ['requested_at']

    def __str__(self):
        return f"{self.user.get_display_name()} -> {self.group.name}"
