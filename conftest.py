import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, SystemRole


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for():
    """Return a factory building an API client authenticated as a user."""
    def _client_for(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client
    return _client_for


@pytest.fixture
def user(db):
    """Create and return a test user."""
    return User.objects.create_user(
        email='student@srishakthi.ac.in',
        password='TestPass123!',
        name='Test Student',
    )


@pytest.fixture
def other_user(db):
    """Create and return another test user."""
    return User.objects.create_user(
        email='other@srishakthi.ac.in',
        password='OtherPass123!',
        name='Other Student',
    )


@pytest.fixture
def third_user(db):
    """Create and return a third test user."""
    return User.objects.create_user(
        email='third@srishakthi.ac.in',
        password='ThirdPass123!',
        name='Third Student',
    )


@pytest.fixture
def system_admin(db):
    """Create and return a system-wide admin."""
    return User.objects.create_user(
        email='admin@srishakthi.ac.in',
        password='AdminPass123!',
        name='System Admin',
        role=SystemRole.ADMIN,
    )


@pytest.fixture
def inactive_user(db):
    """Create and return a deactivated user."""
    return User.objects.create_user(
        email='inactive@srishakthi.ac.in',
        password='TestPass123!',
        name='Inactive Student',
        is_active=False,
    )


@pytest.fixture
def authenticated_client(client_for, user):
    """Return API client authenticated as the test user."""
    return client_for(user)


@pytest.fixture
def other_client(client_for, other_user):
    """Return API client authenticated as the other user."""
    return client_for(other_user)


@pytest.fixture
def admin_client(client_for, system_admin):
    """Return API client authenticated as the system admin."""
    return client_for(system_admin)


@pytest.fixture
def media_root(settings, tmp_path):
    """Store uploaded media under a temporary directory."""
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    return settings.MEDIA_ROOT
