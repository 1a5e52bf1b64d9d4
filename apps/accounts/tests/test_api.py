import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User, SystemRole
from apps.groups.services import create_group, request_join


# =============================================================================
# Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestRegistration:
    """Tests for POST /api/auth/register/"""

    def test_register_success(self, api_client, registration_data):
        """Successfully register a new user."""
        url = reverse('users:register')
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_201_CREATED
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert response.data['user']['role'] == SystemRole.USER

        user = User.objects.get(email='newstudent@srishakthi.ac.in')
        assert user.graduation_year == 2026
        assert user.check_password('SecurePass123!')

    def test_register_lowercases_email(self, api_client, registration_data):
        """Email is stored lower-cased."""
        url = reverse('users:register')
        registration_data['email'] = 'NewStudent@SriShakthi.ac.in'
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_201_CREATED
        assert User.objects.filter(email='newstudent@srishakthi.ac.in').exists()

    def test_register_non_institution_email(self, api_client, registration_data):
        """Only institutional email addresses may register."""
        url = reverse('users:register')
        registration_data['email'] = 'someone@gmail.com'
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data
        assert not User.objects.filter(email='someone@gmail.com').exists()

    def test_register_duplicate_email(self, api_client, registration_data, user):
        """Cannot register with existing email."""
        url = reverse('users:register')
        registration_data['email'] = user.email
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'error' in response.data

    def test_register_short_password(self, api_client, registration_data):
        """Registration fails with a password shorter than 6 characters."""
        url = reverse('users:register')
        registration_data['password'] = 'abc'
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data

    def test_register_graduation_year_out_of_range(self, api_client, registration_data):
        url = reverse('users:register')
        registration_data['graduation_year'] = 2019
        response = api_client.post(url, registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'graduation_year' in response.data


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert response.data['user']['email'] == user.email

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user.email, 'password': 'WrongPass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_nonexistent_user(self, api_client):
        """Login fails for nonexistent user."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': 'ghost@srishakthi.ac.in', 'password': 'Whatever123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, api_client, inactive_user):
        """Deactivated accounts cannot log in."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': inactive_user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_updates_last_login(self, api_client, user):
        """Login updates last_login timestamp."""
        assert user.last_login is None

        url = reverse('users:login')
        api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        user.refresh_from_db()
        assert user.last_login is not None


# =============================================================================
# Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestGetCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        url = reverse('users:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['joined_groups'] == []

    def test_current_user_lists_joined_groups(self, authenticated_client, user, other_user):
        """Groups created or joined show up in joined_groups."""
        own = create_group(name='Robotics', creator=user)
        public = create_group(name='Chess Club', creator=other_user)
        request_join(group_id=public.id, user=user)

        url = reverse('users:current-user')
        response = authenticated_client.get(url)

        names = [group['name'] for group in response.data['joined_groups']]
        assert names == ['Chess Club', 'Robotics']
        assert {group['id'] for group in response.data['joined_groups']} == {str(own.id), str(public.id)}

    def test_get_current_user_unauthenticated(self, api_client):
        url = reverse('users:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Profile Tests
# =============================================================================

@pytest.mark.django_db
class TestUpdateProfile:
    """Tests for PATCH /api/auth/user/update/"""

    def test_update_profile(self, authenticated_client, user):
        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {'name': 'Renamed', 'bio': 'Third year CSE'})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.name == 'Renamed'
        assert user.bio == 'Third year CSE'

    def test_clear_graduation_year(self, authenticated_client, user):
        user.graduation_year = 2025
        user.save()

        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {'graduation_year': None}, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.graduation_year is None

    def test_cannot_update_email(self, authenticated_client, user):
        """Email is not an editable field."""
        url = reverse('users:update-profile')
        authenticated_client.patch(url, {'email': 'changed@srishakthi.ac.in'})

        user.refresh_from_db()
        assert user.email == 'student@srishakthi.ac.in'

    def test_bio_too_long(self, authenticated_client):
        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {'bio': 'x' * 501})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestChangePassword:
    """Tests for POST /api/auth/user/change-password/"""

    def test_change_password(self, authenticated_client, user):
        url = reverse('users:change-password')
        response = authenticated_client.post(url, {
            'current_password': 'TestPass123!',
            'new_password': 'BrandNew456!',
        })

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.check_password('BrandNew456!')

    def test_wrong_current_password(self, authenticated_client, user):
        url = reverse('users:change-password')
        response = authenticated_client.post(url, {
            'current_password': 'Nope123!',
            'new_password': 'BrandNew456!',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        user.refresh_from_db()
        assert user.check_password('TestPass123!')


@pytest.mark.django_db
class TestAvatarUpload:
    """Tests for POST /api/auth/user/avatar/"""

    def test_upload_avatar(self, authenticated_client, user, avatar_file, media_root):
        url = reverse('users:upload-avatar')
        response = authenticated_client.post(url, {'avatar': avatar_file}, format='multipart')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.avatar_name.startswith('unilink/')
        assert user.avatar_name.endswith('.png')
        assert response.data['avatar_url'] == user.avatar_url

    def test_upload_rejects_non_image(self, authenticated_client, media_root):
        from django.core.files.uploadedfile import SimpleUploadedFile

        url = reverse('users:upload-avatar')
        document = SimpleUploadedFile('notes.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = authenticated_client.post(url, {'avatar': document}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_upload_without_file(self, authenticated_client):
        url = reverse('users:upload-avatar')
        response = authenticated_client.post(url, {}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestDeactivateAccount:
    """Tests for DELETE /api/auth/user/deactivate/"""

    def test_deactivate_account(self, authenticated_client, user):
        url = reverse('users:deactivate')
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.is_active is False
        # Soft delete only
        assert User.objects.filter(id=user.id).exists()


# =============================================================================
# Directory & Moderation Tests
# =============================================================================

@pytest.mark.django_db
class TestUserDirectory:

    def test_list_users_requires_system_admin(self, authenticated_client):
        url = reverse('users:user-list')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_users_as_admin(self, admin_client, user, other_user):
        url = reverse('users:user-list')
        response = admin_client.get(url, {'search': 'other'})

        assert response.status_code == status.HTTP_200_OK
        emails = [entry['email'] for entry in response.data['results']]
        assert emails == [other_user.email]

    def test_get_user_by_id(self, authenticated_client, other_user):
        url = reverse('users:user-detail', kwargs={'pk': other_user.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == other_user.name
        assert set(response.data.keys()) == {'id', 'name', 'email', 'avatar_url'}

    def test_get_inactive_user_not_found(self, authenticated_client, inactive_user):
        url = reverse('users:user-detail', kwargs={'pk': inactive_user.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestSetActive:
    """Tests for POST /api/auth/users/{id}/set-active/"""

    def test_admin_deactivates_user(self, admin_client, user):
        url = reverse('users:user-set-active', kwargs={'pk': user.id})
        response = admin_client.post(url, {'is_active': False})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.is_active is False

    def test_admin_reactivates_user(self, admin_client, inactive_user):
        url = reverse('users:user-set-active', kwargs={'pk': inactive_user.id})
        response = admin_client.post(url, {'is_active': True})

        assert response.status_code == status.HTTP_200_OK
        inactive_user.refresh_from_db()
        assert inactive_user.is_active is True

    def test_admin_cannot_deactivate_self(self, admin_client, system_admin):
        url = reverse('users:user-set-active', kwargs={'pk': system_admin.id})
        response = admin_client.post(url, {'is_active': False})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_plain_user_cannot_moderate(self, authenticated_client, other_user):
        url = reverse('users:user-set-active', kwargs={'pk': other_user.id})
        response = authenticated_client.post(url, {'is_active': False})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        other_user.refresh_from_db()
        assert other_user.is_active is True


# =============================================================================
# User Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserModel:

    def test_create_user(self):
        user = User.objects.create_user(
            email='Mixed@SriShakthi.ac.in',
            password='TestPass123!',
            name='Mixed Case',
        )

        assert user.email == 'mixed@srishakthi.ac.in'
        assert user.role == SystemRole.USER
        assert user.is_system_admin is False

    def test_create_superuser(self):
        admin = User.objects.create_superuser(
            email='root@srishakthi.ac.in',
            password='RootPass123!',
            name='Root',
        )

        assert admin.role == SystemRole.ADMIN
        assert admin.is_system_admin is True
        assert admin.is_staff is True

    def test_get_display_name(self, user):
        assert user.get_display_name() == 'Test Student'
        user.name = ''
        assert user.get_display_name() == 'student'
