import pytest
from apps.groups.models import GroupMembership, GroupRole
from apps.groups.services import create_group


@pytest.fixture
def creator(user):
    """The user who creates the groups below."""
    return user


@pytest.fixture
def member_user(other_user):
    """A plain member of the groups below."""
    return other_user


@pytest.fixture
def outsider(third_user):
    """A user with no relation to the groups below."""
    return third_user


@pytest.fixture
def public_group(creator, member_user):
    """Public group with the creator (admin) and one plain member."""
    group = create_group(
        name='Coding Club',
        creator=creator,
        description='Weekly coding sessions',
        tags=['coding', 'python'],
    )
    group.add_member(member_user)
    return group


@pytest.fixture
def private_group(creator):
    """Private group with only the creator."""
    return create_group(name='CS Club', creator=creator, is_private=True)


@pytest.fixture
def moderator(db, public_group, private_group):
    """A user who moderates both groups."""
    from apps.accounts.models import User

    user = User.objects.create_user(
        email='moderator@srishakthi.ac.in',
        password='ModPass123!',
        name='Group Moderator',
    )
    for group in (public_group, private_group):
        GroupMembership.objects.create(group=group, user=user, role=GroupRole.MODERATOR)
        group.refresh_member_count()
    return user
