"""
BoxIT Backend — Image Upload Validation
========================================

What:  Turns a multipart UploadFile into a validated in-memory ImageUpload.
When:  At the HTTP boundary, before any database or storage mutation.

Validation order:
    1. Empty field (no file chosen)       → treated as "no image"
    2. Declared content type in allow-list → else InvalidInputError
    3. Size ≤ max_image_size (5 MiB)      → else InvalidInputError
       (reads at most max+1 bytes, so oversized bodies are never fully
       buffered)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from boxit.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
)


@dataclass(frozen=True)
class ImageUpload:
    content: bytes
    content_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


def validate_image(content_type: Optional[str], size: int, max_size: int) -> str:
    """
    Check declared type and size. Returns the normalized content type.

    Raises:
        InvalidInputError for a disallowed type, an empty file or an
        oversized file
    """
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    if normalized not in ALLOWED_IMAGE_TYPES:
        raise InvalidInputError(
            "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed.",
            field="image",
            context={"content_type": normalized or None, "allowed": list(ALLOWED_IMAGE_TYPES)},
        )
    if size == 0:
        raise InvalidInputError("The uploaded image is empty.", field="image")
    if size > max_size:
        max_mb = max_size / (1024 * 1024)
        raise InvalidInputError(
            f"File too large. Maximum size is {max_mb:.0f}MB.",
            field="image",
            context={"max_size": max_size},
        )
    return normalized


async def read_image_upload(upload: Optional[UploadFile], max_size: int) -> Optional[ImageUpload]:
    """Validate and buffer an optional multipart image field."""
    if upload is None or not upload.filename:
        return None

    content = await upload.read(max_size + 1)
    content_type = validate_image(upload.content_type, len(content), max_size)
    logger.debug("Accepted image upload %s (%s, %d bytes)", upload.filename, content_type, len(content))
    return ImageUpload(content=content, content_type=content_type, filename=upload.filename)
