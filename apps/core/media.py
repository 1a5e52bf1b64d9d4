"""
Media storage adapter.

Wraps Django's storage API so the rest of the code only deals with the
stored reference (type, url, storage name, size) and never with file
bytes. Swapping ``STORAGES['default']`` for an object-storage backend
needs no change here.
"""

import logging
import os
import uuid
from dataclasses import dataclass, asdict
from typing import Optional

from django.conf import settings
from django.core.files.storage import default_storage

from .exceptions import DomainValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif'}
VIDEO_EXTENSIONS = {'mp4', 'mov', 'avi'}


class UnsupportedMediaError(DomainValidationError):
    """Raised when an uploaded file is not an allowed image or video."""
    pass


class MediaTooLargeError(DomainValidationError):
    """Raised when an uploaded file exceeds the size limit."""
    pass


@dataclass(frozen=True)
class StoredMedia:
    media_type: str
    url: str
    storage_name: str
    filename: str
    size: int

    def as_dict(self) -> dict:
        return asdict(self)


def detect_media_type(filename: str, content_type: str = '') -> str:
    """
    Return 'image' or 'video' for an upload.

    Both the extension and the declared content type must agree.

    Raises:
        UnsupportedMediaError: If the file is neither an allowed image nor video
    """
    extension = os.path.splitext(filename)[1].lstrip('.').lower()
    main_type = (content_type or '').split('/')[0].lower()

    if extension in IMAGE_EXTENSIONS and main_type in ('image', ''):
        return 'image'
    if extension in VIDEO_EXTENSIONS and main_type in ('video', ''):
        return 'video'

    raise UnsupportedMediaError('Only image and video files are allowed')


class MediaStorage:
    """Stores uploads under a folder of the configured storage backend."""

    def __init__(self, storage=None, folder: Optional[str] = None, max_size: Optional[int] = None):
        self.storage = storage or default_storage
        self.folder = folder or settings.MEDIA_UPLOAD_FOLDER
        self.max_size = max_size or settings.MEDIA_MAX_FILE_SIZE

    def store(self, uploaded_file) -> StoredMedia:
        """
        Validate and save an uploaded file.

        Args:
            uploaded_file: Django ``UploadedFile``

        Returns:
            StoredMedia reference for the saved file

        Raises:
            UnsupportedMediaError: If the file type is not allowed
            MediaTooLargeError: If the file exceeds the size limit
        """
        filename = os.path.basename(uploaded_file.name)
        media_type = detect_media_type(filename, getattr(uploaded_file, 'content_type', ''))

        if uploaded_file.size > self.max_size:
            limit_mb = self.max_size // (1024 * 1024)
            raise MediaTooLargeError(f'File too large. Maximum size is {limit_mb}MB.')

        extension = os.path.splitext(filename)[1].lower()
        target = f'{self.folder}/{uuid.uuid4().hex}{extension}'
        storage_name = self.storage.save(target, uploaded_file)

        return StoredMedia(
            media_type=media_type,
            url=self.storage.url(storage_name),
            storage_name=storage_name,
            filename=filename,
            size=uploaded_file.size,
        )

    def store_many(self, uploaded_files) -> list[StoredMedia]:
        """Store several files; already stored ones are removed if one fails."""
        stored = []
        try:
            for uploaded_file in uploaded_files:
                stored.append(self.store(uploaded_file))
        except DomainValidationError:
            self.delete_many(item.storage_name for item in stored)
            raise
        return stored

    def delete(self, storage_name: str) -> None:
        """Delete a stored file. Missing files are ignored by the backend."""
        if storage_name:
            self.storage.delete(storage_name)

    def delete_many(self, storage_names) -> None:
        for storage_name in storage_names:
            try:
                self.delete(storage_name)
            except OSError as e:
                logger.warning("Could not delete stored media %s: %s", storage_name, e)
