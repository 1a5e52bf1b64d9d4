import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from apps.groups.services import create_group
from apps.posts.services import create_post


@pytest.fixture
def group(user, other_user):
    """Public group where user is the creator and other_user a member."""
    group = create_group(name='Photography', creator=user)
    group.add_member(other_user)
    return group


@pytest.fixture
def private_group(user):
    """Private group with only the creator."""
    return create_group(name='Study Circle', creator=user, is_private=True)


@pytest.fixture
def post(group, user):
    """Post by the group creator."""
    return create_post(
        author=user,
        group_id=group.id,
        content='First shoot this Saturday',
        tags=['event'],
    )


@pytest.fixture
def image_file():
    return SimpleUploadedFile('sunset.jpg', b'\xff\xd8\xff\xe0fake-jpeg', content_type='image/jpeg')


@pytest.fixture
def video_file():
    return SimpleUploadedFile('clip.mp4', b'\x00\x00\x00\x18ftypmp42', content_type='video/mp4')
