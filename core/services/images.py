"""Resize, encode and store interview screenshots.

Uploads are decoded with Pillow, rotated according to their EXIF
orientation, scaled down to ``INTERVIEW_IMAGE_MAX_WIDTH`` pixels wide
(never up) and re-encoded as JPEG before being written to
``default_storage`` under ``interview-images/<owner>/<timestamp>.jpg``.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone
from PIL import Image, ImageOps, UnidentifiedImageError

from core.services.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_FORMAT = 'JPEG'
IMAGE_EXTENSION = 'jpg'


def _namespace() -> str:
    return getattr(settings, 'INTERVIEW_IMAGE_NAMESPACE', 'interview-images')


def build_image_key(owner_id: int) -> str:
    """Return ``<namespace>/<owner>/<timestamp>.jpg`` for a new upload."""

    stamp = timezone.now().strftime('%Y%m%d%H%M%S%f')
    return f"{_namespace()}/{owner_id}/{stamp}.{IMAGE_EXTENSION}"


def resize_image(raw: bytes, max_width: Optional[int] = None, quality: Optional[int] = None) -> bytes:
    """Decode ``raw`` and return JPEG bytes no wider than ``max_width``."""

    max_width = max_width or getattr(settings, 'INTERVIEW_IMAGE_MAX_WIDTH', 1200)
    quality = quality or getattr(settings, 'INTERVIEW_IMAGE_QUALITY', 80)
    try:
        with Image.open(BytesIO(raw)) as source:
            image = ImageOps.exif_transpose(source)
            if image.mode not in ('RGB', 'L'):
                image = image.convert('RGB')
            if image.width > max_width:
                height = max(1, round(image.height * max_width / image.width))
                image = image.resize((max_width, height), Image.LANCZOS)
            output = BytesIO()
            image.save(output, format=IMAGE_FORMAT, quality=quality, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ValidationError(f'Invalid image: {exc}') from exc
    return output.getvalue()


def store_interview_image(owner_id: int, upload) -> str:
    """Resize ``upload`` and save it, returning the storage key."""

    encoded = resize_image(upload.read())
    key = build_image_key(owner_id)
    try:
        saved = default_storage.save(key, ContentFile(encoded))
    except OSError as exc:
        raise StoreError(str(exc)) from exc
    logger.info('Stored interview image %s (%d bytes)', saved, len(encoded))
    return saved


def delete_interview_image(key: Optional[str]) -> bool:
    """Remove a stored image, returning ``False`` when deletion failed.

    Callers use this both for cascading deletes and for cleaning up uploads
    whose datastore write failed; neither path retries.
    """

    if not key:
        return True
    try:
        default_storage.delete(key)
    except OSError:
        logger.exception('Failed to delete interview image %s', key)
        return False
    return True
