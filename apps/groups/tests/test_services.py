"""
Service layer unit tests for groups app.

Tests cover:
- Membership state machine (join, request, approve, reject, leave)
- Creator invariant
- Authorization of privileged operations
- Counter maintenance and the joined_groups index
- Soft delete cascade to posts
"""

import pytest
from uuid import uuid4

from apps.accounts.models import SystemRole
from apps.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from apps.groups.models import Group, GroupMembership, GroupRole, JoinRequest
from apps.groups.permissions import is_privileged
from apps.groups.services import (
    JoinStatus,
    create_group,
    get_group_by_id,
    list_groups,
    get_user_groups,
    update_group,
    delete_group,
    request_join,
    leave_group,
    add_member,
    remove_member,
    get_group_members,
    list_join_requests,
    approve_request,
    reject_request,
    update_member_role,
    GroupNotFoundError,
    AlreadyMemberError,
    JoinRequestPendingError,
    JoinRequestNotFoundError,
    NotMemberError,
    MemberNotFoundError,
    CannotRemoveCreatorError,
    CannotChangeCreatorRoleError,
    InsufficientPermissionsError,
    InactiveUserError,
    InvalidRoleError,
    InvalidGroupDataError,
)
from apps.posts.models import Post
from apps.posts.services import create_post


def member_ids(group):
    return list(group.memberships.order_by('joined_at').values_list('user_id', flat=True))


def pending_ids(group):
    return list(group.join_requests.order_by('requested_at').values_list('user_id', flat=True))


# =============================================================================
# Authorization Predicate
# =============================================================================

class TestIsPrivileged:
    """is_privileged only looks at the data it is given."""

    @pytest.mark.parametrize('member_role, is_creator, system_role, expected', [
        (GroupRole.ADMIN, False, SystemRole.USER, True),
        (GroupRole.MODERATOR, False, SystemRole.USER, True),
        (GroupRole.MEMBER, False, SystemRole.USER, False),
        (None, False, SystemRole.USER, False),
        (None, True, SystemRole.USER, True),
        (GroupRole.MEMBER, True, SystemRole.USER, True),
        (None, False, SystemRole.ADMIN, True),
        (GroupRole.MEMBER, False, SystemRole.ADMIN, True),
    ])
    def test_truth_table(self, member_role, is_creator, system_role, expected):
        assert is_privileged(
            member_role=member_role,
            is_creator=is_creator,
            system_role=system_role,
        ) is expected


# =============================================================================
# Group Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupManagement:
    """Tests for group_management.py service functions."""

    def test_create_group(self, creator):
        """Creating a group makes the creator its first admin member."""
        group = create_group(
            name='  AI Society  ',
            creator=creator,
            description='Machine learning reading group',
            is_private=True,
            tags=[' ml ', '', 'ai'],
        )

        assert group.name == 'AI Society'
        assert group.is_private is True
        assert group.tags == ['ml', 'ai']
        assert group.member_count == 1
        assert group.post_count == 0

        membership = GroupMembership.objects.get(group=group, user=creator)
        assert membership.role == GroupRole.ADMIN
        assert creator.joined_groups.filter(id=group.id).exists()

    @pytest.mark.parametrize('kwargs', [
        {'name': 'A'},
        {'name': 'x' * 101},
        {'name': 'Valid', 'description': 'd' * 501},
        {'name': 'Valid', 'tags': ['t' * 31]},
    ])
    def test_create_group_invalid_data(self, creator, kwargs):
        with pytest.raises(InvalidGroupDataError):
            create_group(creator=creator, **kwargs)

        assert Group.objects.count() == 0

    def test_get_group_by_id_not_found(self):
        with pytest.raises(GroupNotFoundError) as exc:
            get_group_by_id(group_id=uuid4())

        assert isinstance(exc.value, NotFoundError)

    def test_list_groups_flags(self, public_group, private_group, member_user):
        request_join(group_id=private_group.id, user=member_user)

        groups = {group.id: group for group in list_groups(user=member_user)}

        assert groups[public_group.id].is_member_flag is True
        assert groups[public_group.id].has_pending_request_flag is False
        assert groups[private_group.id].is_member_flag is False
        assert groups[private_group.id].has_pending_request_flag is True

    def test_list_groups_search(self, public_group, private_group, outsider):
        names = [group.name for group in list_groups(user=outsider, search='coding')]

        assert names == ['Coding Club']

    def test_get_user_groups(self, public_group, private_group, member_user, creator):
        assert list(get_user_groups(user=member_user)) == [public_group]
        assert set(get_user_groups(user=creator)) == {public_group, private_group}

    def test_update_group_by_moderator(self, public_group, moderator):
        updated = update_group(
            group_id=public_group.id,
            user=moderator,
            name='Coding Club 2.0',
            tags=['web', 'python'],
        )

        assert updated.name == 'Coding Club 2.0'
        assert updated.tags == ['web', 'python']
        assert updated.description == 'Weekly coding sessions'

    def test_update_group_by_member_forbidden(self, public_group, member_user):
        with pytest.raises(InsufficientPermissionsError) as exc:
            update_group(group_id=public_group.id, user=member_user, name='Hijacked')

        assert isinstance(exc.value, ForbiddenError)
        public_group.refresh_from_db()
        assert public_group.name == 'Coding Club'

    def test_delete_group_cascades_to_posts(self, public_group, creator, member_user):
        """Soft delete deactivates every post of the group."""
        create_post(author=creator, group_id=public_group.id, content='Welcome!')
        create_post(author=member_user, group_id=public_group.id, content='Hi all')
        public_group.refresh_from_db()
        assert public_group.post_count == 2

        deactivated = delete_group(group_id=public_group.id, user=creator)

        assert deactivated == 2
        public_group.refresh_from_db()
        assert public_group.is_active is False
        assert public_group.post_count == 0
        assert not Post.objects.filter(group=public_group, is_active=True).exists()
        assert public_group not in list_groups(user=creator)

    def test_delete_group_by_system_admin(self, public_group, system_admin):
        delete_group(group_id=public_group.id, user=system_admin)

        public_group.refresh_from_db()
        assert public_group.is_active is False

    def test_delete_group_by_moderator_forbidden(self, public_group, moderator):
        """Only the creator or a system admin may delete."""
        with pytest.raises(InsufficientPermissionsError):
            delete_group(group_id=public_group.id, user=moderator)

    def test_deleted_group_is_not_found(self, public_group, creator, outsider):
        delete_group(group_id=public_group.id, user=creator)

        with pytest.raises(GroupNotFoundError):
            request_join(group_id=public_group.id, user=outsider)


# =============================================================================
# Membership State Machine Tests
# =============================================================================

@pytest.mark.django_db
class TestJoin:

    def test_join_public_group(self, public_group, outsider):
        """NONE -> MEMBER directly for public groups."""
        status = request_join(group_id=public_group.id, user=outsider)

        assert status == JoinStatus.JOINED
        public_group.refresh_from_db()
        assert outsider.id in member_ids(public_group)
        assert public_group.member_count == len(member_ids(public_group)) == 3
        assert outsider.joined_groups.filter(id=public_group.id).exists()

    def test_join_private_group_queues_request(self, private_group, outsider):
        """NONE -> PENDING for private groups."""
        status = request_join(group_id=private_group.id, user=outsider)

        assert status == JoinStatus.PENDING
        private_group.refresh_from_db()
        assert pending_ids(private_group) == [outsider.id]
        assert outsider.id not in member_ids(private_group)
        assert private_group.member_count == 1
        assert not outsider.joined_groups.filter(id=private_group.id).exists()

    def test_join_when_already_member(self, public_group, member_user):
        with pytest.raises(AlreadyMemberError) as exc:
            request_join(group_id=public_group.id, user=member_user)

        assert isinstance(exc.value, ConflictError)

    def test_join_private_when_already_member(self, private_group, creator):
        with pytest.raises(AlreadyMemberError):
            request_join(group_id=private_group.id, user=creator)

    def test_join_private_twice(self, private_group, outsider):
        request_join(group_id=private_group.id, user=outsider)

        with pytest.raises(JoinRequestPendingError) as exc:
            request_join(group_id=private_group.id, user=outsider)

        assert isinstance(exc.value, ConflictError)
        assert JoinRequest.objects.filter(group=private_group, user=outsider).count() == 1

    def test_join_inactive_user(self, public_group, inactive_user):
        with pytest.raises(InactiveUserError):
            request_join(group_id=public_group.id, user=inactive_user)

    def test_join_missing_group(self, outsider):
        with pytest.raises(GroupNotFoundError):
            request_join(group_id=uuid4(), user=outsider)

    def test_public_join_consumes_stale_request(self, private_group, creator, outsider):
        """A user is never both pending and member."""
        request_join(group_id=private_group.id, user=outsider)
        update_group(group_id=private_group.id, user=creator, is_private=False)

        request_join(group_id=private_group.id, user=outsider)

        private_group.refresh_from_db()
        assert outsider.id in member_ids(private_group)
        assert pending_ids(private_group) == []


@pytest.mark.django_db
class TestJoinRequests:

    def test_cs_club_scenario(self, creator, member_user, third_user):
        """Private group: request, then a moderator approves."""
        cs_club = create_group(name='CS Club', creator=creator, is_private=True)
        moderator = third_user
        GroupMembership.objects.create(group=cs_club, user=moderator, role=GroupRole.MODERATOR)
        cs_club.refresh_member_count()

        status = request_join(group_id=cs_club.id, user=member_user)

        assert status == JoinStatus.PENDING
        assert pending_ids(cs_club) == [member_user.id]
        assert member_ids(cs_club) == [creator.id, moderator.id]

        approve_request(group_id=cs_club.id, user_id=member_user.id, approved_by=moderator)

        cs_club.refresh_from_db()
        assert member_ids(cs_club) == [creator.id, moderator.id, member_user.id]
        assert pending_ids(cs_club) == []
        assert cs_club.member_count == 3
        assert cs_club.get_user_role(member_user) == GroupRole.MEMBER
        assert member_user.joined_groups.filter(id=cs_club.id).exists()

    def test_approve_by_creator(self, private_group, creator, outsider):
        request_join(group_id=private_group.id, user=outsider)

        membership = approve_request(group_id=private_group.id, user_id=outsider.id, approved_by=creator)

        assert membership.role == GroupRole.MEMBER
        private_group.refresh_from_db()
        assert private_group.member_count == 2

    def test_approve_by_system_admin(self, private_group, system_admin, outsider):
        request_join(group_id=private_group.id, user=outsider)

        approve_request(group_id=private_group.id, user_id=outsider.id, approved_by=system_admin)

        assert private_group.has_member(outsider)
        assert not private_group.has_member(system_admin)

    def test_approve_without_request(self, private_group, creator, outsider):
        with pytest.raises(JoinRequestNotFoundError) as exc:
            approve_request(group_id=private_group.id, user_id=outsider.id, approved_by=creator)

        assert isinstance(exc.value, NotFoundError)
        assert not private_group.has_member(outsider)

    def test_reject_request(self, private_group, creator, outsider):
        """PENDING -> NONE, member count unchanged."""
        request_join(group_id=private_group.id, user=outsider)

        reject_request(group_id=private_group.id, user_id=outsider.id, rejected_by=creator)

        private_group.refresh_from_db()
        assert pending_ids(private_group) == []
        assert member_ids(private_group) == [creator.id]
        assert private_group.member_count == 1

    def test_reject_without_request(self, private_group, creator, outsider):
        with pytest.raises(JoinRequestNotFoundError):
            reject_request(group_id=private_group.id, user_id=outsider.id, rejected_by=creator)

    def test_plain_member_cannot_review(self, private_group, creator, member_user, outsider):
        GroupMembership.objects.create(group=private_group, user=member_user)
        request_join(group_id=private_group.id, user=outsider)

        with pytest.raises(InsufficientPermissionsError):
            approve_request(group_id=private_group.id, user_id=outsider.id, approved_by=member_user)
        with pytest.raises(InsufficientPermissionsError):
            reject_request(group_id=private_group.id, user_id=outsider.id, rejected_by=member_user)
        with pytest.raises(InsufficientPermissionsError):
            list_join_requests(group_id=private_group.id, user=member_user)

        assert pending_ids(private_group) == [outsider.id]

    def test_list_join_requests(self, private_group, moderator, member_user, outsider):
        request_join(group_id=private_group.id, user=member_user)
        request_join(group_id=private_group.id, user=outsider)

        pending = list_join_requests(group_id=private_group.id, user=moderator)

        assert [entry.user_id for entry in pending] == [member_user.id, outsider.id]


@pytest.mark.django_db
class TestLeaveAndRemove:

    def test_leave_group(self, public_group, member_user):
        """MEMBER -> NONE."""
        leave_group(group_id=public_group.id, user=member_user)

        public_group.refresh_from_db()
        assert member_user.id not in member_ids(public_group)
        assert public_group.member_count == 1

    def test_creator_cannot_leave(self, public_group, creator):
        with pytest.raises(CannotRemoveCreatorError) as exc:
            leave_group(group_id=public_group.id, user=creator)

        assert isinstance(exc.value, ForbiddenError)
        assert public_group.has_member(creator)

    def test_leave_when_not_member(self, public_group, outsider):
        with pytest.raises(NotMemberError):
            leave_group(group_id=public_group.id, user=outsider)

    def test_remove_member(self, public_group, moderator, member_user):
        member_user.joined_groups.add(public_group)

        remove_member(group_id=public_group.id, user_id=member_user.id, removed_by=moderator)

        public_group.refresh_from_db()
        assert not public_group.has_member(member_user)
        assert public_group.member_count == len(member_ids(public_group))
        assert not member_user.joined_groups.filter(id=public_group.id).exists()

    @pytest.mark.parametrize('actor_fixture', ['creator', 'moderator', 'system_admin', 'member_user', 'outsider'])
    def test_creator_can_never_be_removed(self, request, public_group, creator, actor_fixture):
        """Removing the creator fails whoever asks."""
        actor = request.getfixturevalue(actor_fixture)

        with pytest.raises(CannotRemoveCreatorError):
            remove_member(group_id=public_group.id, user_id=creator.id, removed_by=actor)

        assert public_group.has_member(creator)
        assert public_group.get_user_role(creator) == GroupRole.ADMIN

    def test_plain_member_cannot_remove(self, public_group, member_user, outsider):
        request_join(group_id=public_group.id, user=outsider)

        with pytest.raises(InsufficientPermissionsError):
            remove_member(group_id=public_group.id, user_id=outsider.id, removed_by=member_user)

        assert public_group.has_member(outsider)

    def test_remove_non_member(self, public_group, creator, outsider):
        with pytest.raises(NotMemberError):
            remove_member(group_id=public_group.id, user_id=outsider.id, removed_by=creator)

    def test_remove_unknown_user(self, public_group, creator):
        with pytest.raises(NotMemberError):
            remove_member(group_id=public_group.id, user_id=uuid4(), removed_by=creator)


@pytest.mark.django_db
class TestAddMember:

    def test_add_member(self, public_group, creator, outsider):
        membership = add_member(
            group_id=public_group.id,
            user_id=outsider.id,
            added_by=creator,
            role=GroupRole.MODERATOR,
        )

        assert membership.role == GroupRole.MODERATOR
        public_group.refresh_from_db()
        assert public_group.member_count == 3
        assert outsider.joined_groups.filter(id=public_group.id).exists()

    def test_add_existing_member(self, public_group, creator, member_user):
        with pytest.raises(AlreadyMemberError):
            add_member(group_id=public_group.id, user_id=member_user.id, added_by=creator)

    def test_add_admin_role_rejected(self, public_group, creator, outsider):
        with pytest.raises(InvalidRoleError):
            add_member(group_id=public_group.id, user_id=outsider.id, added_by=creator, role=GroupRole.ADMIN)

    def test_add_unknown_user(self, public_group, creator):
        with pytest.raises(MemberNotFoundError):
            add_member(group_id=public_group.id, user_id=uuid4(), added_by=creator)

    def test_add_inactive_user(self, public_group, creator, inactive_user):
        with pytest.raises(MemberNotFoundError):
            add_member(group_id=public_group.id, user_id=inactive_user.id, added_by=creator)

    def test_plain_member_cannot_add(self, public_group, member_user, outsider):
        with pytest.raises(InsufficientPermissionsError):
            add_member(group_id=public_group.id, user_id=outsider.id, added_by=member_user)

    def test_add_consumes_pending_request(self, private_group, creator, outsider):
        request_join(group_id=private_group.id, user=outsider)

        add_member(group_id=private_group.id, user_id=outsider.id, added_by=creator)

        assert pending_ids(private_group) == []
        assert private_group.has_member(outsider)

    def test_get_group_members(self, public_group, creator, member_user):
        members = get_group_members(group_id=public_group.id)

        assert [membership.user_id for membership in members] == [creator.id, member_user.id]


@pytest.mark.django_db
class TestRoleManagement:

    def test_promote_member(self, public_group, creator, member_user):
        membership = update_member_role(
            group_id=public_group.id,
            user_id=member_user.id,
            new_role=GroupRole.MODERATOR,
            updated_by=creator,
        )

        assert membership.role == GroupRole.MODERATOR

    def test_moderator_can_promote_to_admin(self, public_group, moderator, member_user):
        update_member_role(
            group_id=public_group.id,
            user_id=member_user.id,
            new_role=GroupRole.ADMIN,
            updated_by=moderator,
        )

        assert public_group.get_user_role(member_user) == GroupRole.ADMIN

    def test_system_admin_can_change_roles(self, public_group, system_admin, member_user):
        update_member_role(
            group_id=public_group.id,
            user_id=member_user.id,
            new_role=GroupRole.MODERATOR,
            updated_by=system_admin,
        )

        assert public_group.get_user_role(member_user) == GroupRole.MODERATOR

    def test_creator_role_is_fixed(self, public_group, creator, system_admin):
        with pytest.raises(CannotChangeCreatorRoleError):
            update_member_role(
                group_id=public_group.id,
                user_id=creator.id,
                new_role=GroupRole.MEMBER,
                updated_by=system_admin,
            )

        assert public_group.get_user_role(creator) == GroupRole.ADMIN

    def test_target_must_be_member(self, public_group, creator, outsider):
        with pytest.raises(NotMemberError):
            update_member_role(
                group_id=public_group.id,
                user_id=outsider.id,
                new_role=GroupRole.MODERATOR,
                updated_by=creator,
            )

    def test_invalid_role(self, public_group, creator, member_user):
        with pytest.raises(InvalidRoleError):
            update_member_role(
                group_id=public_group.id,
                user_id=member_user.id,
                new_role='owner',
                updated_by=creator,
            )

    def test_plain_member_cannot_change_roles(self, public_group, member_user, outsider):
        request_join(group_id=public_group.id, user=outsider)

        with pytest.raises(InsufficientPermissionsError):
            update_member_role(
                group_id=public_group.id,
                user_id=outsider.id,
                new_role=GroupRole.MODERATOR,
                updated_by=member_user,
            )


# =============================================================================
# Model Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupModel:

    def test_creator_membership_forced_to_admin(self, creator):
        group = Group.objects.create(name='Raw', creator=creator)

        membership = GroupMembership.objects.create(group=group, user=creator, role=GroupRole.MEMBER)

        assert membership.role == GroupRole.ADMIN

    def test_member_count_is_recomputed(self, public_group):
        public_group.member_count = 99
        public_group.save()

        assert public_group.refresh_member_count() == 2

    def test_group_str(self, public_group):
        assert str(public_group) == 'Coding Club'
