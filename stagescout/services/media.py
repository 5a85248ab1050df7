"""
Local-disk media storage for uploads.

Files land under ``MEDIA_ROOT/<kind>/`` and are served by the app at
``MEDIA_URL/<kind>/<name>``.
"""

import io
import logging
import os
import uuid
from typing import Dict, Optional, Set

from PIL import Image

from stagescout.config import settings
from stagescout.errors import ValidationFailedError
from stagescout.models.post import MediaType
from stagescout.security.validation import contains_malicious_file_content, is_safe_filename

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpeg', '.jpg', '.png'}
VIDEO_EXTENSIONS = {'.mp4', '.mov'}
DOCUMENT_EXTENSIONS = {'.pdf', '.doc', '.docx'}

ALLOWED_EXTENSIONS: Dict[str, Set[str]] = {
    'posts': IMAGE_EXTENSIONS | VIDEO_EXTENSIONS,
    'avatars': IMAGE_EXTENSIONS,
    'covers': IMAGE_EXTENSIONS,
    'group_covers': IMAGE_EXTENSIONS,
    'resumes': DOCUMENT_EXTENSIONS,
}


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def media_type_for(filename: str) -> MediaType:
    """Posts carry either a photo or a video"""
    if file_extension(filename) in VIDEO_EXTENSIONS:
        return MediaType.VIDEO
    return MediaType.PHOTO


def build_filename(kind: str, filename: str) -> str:
    return f"{kind}-{uuid.uuid4().hex}{file_extension(filename)}"


class MediaStore:
    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = root or settings.MEDIA_ROOT
        self.base_url = (base_url or settings.MEDIA_URL).rstrip('/')

    def validate(self, kind: str, content: bytes, filename: str) -> None:
        if kind not in ALLOWED_EXTENSIONS:
            raise ValidationFailedError(f"Unknown upload kind: {kind}")

        if not content:
            raise ValidationFailedError("Uploaded file is empty")

        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailedError(
                f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
            )

        if not is_safe_filename(filename):
            raise ValidationFailedError("Invalid filename")

        extension = file_extension(filename)
        if extension not in ALLOWED_EXTENSIONS[kind]:
            allowed = ', '.join(sorted(ext.lstrip('.') for ext in ALLOWED_EXTENSIONS[kind]))
            raise ValidationFailedError(f"Invalid file type. Allowed: {allowed}")

        if contains_malicious_file_content(content):
            raise ValidationFailedError("File contains potentially malicious content")

        if extension in IMAGE_EXTENSIONS:
            try:
                with Image.open(io.BytesIO(content)) as image:
                    image.verify()
            except Exception:
                raise ValidationFailedError("Uploaded image is not a valid image file")

    def save(self, kind: str, content: bytes, filename: str) -> str:
        """Validate and store an upload; returns its public URL"""
        self.validate(kind, content, filename)

        upload_dir = os.path.join(self.root, kind)
        os.makedirs(upload_dir, exist_ok=True)

        stored_name = build_filename(kind, filename)
        with open(os.path.join(upload_dir, stored_name), "wb") as f:
            f.write(content)

        logger.info(f"Stored {kind} upload {stored_name} ({len(content)} bytes)")
        return f"{self.base_url}/{kind}/{stored_name}"


media_store = MediaStore()
