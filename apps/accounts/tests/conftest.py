import pytest
from django.core.files.uploadedfile import SimpleUploadedFile


@pytest.fixture
def registration_data():
    """Valid registration payload."""
    return {
        'name': 'New Student',
        'email': 'newstudent@srishakthi.ac.in',
        'password': 'SecurePass123!',
        'graduation_year': 2026,
    }


@pytest.fixture
def avatar_file():
    """Small PNG upload."""
    return SimpleUploadedFile('avatar.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')
