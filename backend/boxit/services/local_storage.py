"""
BoxIT Backend — Local Disk Image Storage
=========================================

What:  ImageStorage backend writing to a directory on the server.
How:   Images are decoded with Pillow, downscaled so the longest side is at
       most `image_max_dimension`, and written with aiofiles under a
       date-organized path:

           storage/
           └── 2026/
               └── 10/
                   └── 19/
                       └── a1b2c3d4-....jpg

       The returned reference is `/api/files/<relative path>`, served by
       the files route.
"""

import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from PIL import Image

from boxit.exceptions import InvalidInputError, UpstreamServiceError
from boxit.services.storage_base import ImageStorage

logger = logging.getLogger(__name__)

FILES_URL_PREFIX = "/api/files/"

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def downscale_image(content: bytes, max_dimension: int) -> bytes:
    """
    Shrink an image so its longest side fits `max_dimension`.

    Returns the original bytes when no resize is needed and for GIFs
    (re-encoding would drop animation frames).

    Raises:
        InvalidInputError: the bytes are not an image Pillow can decode
    """
    try:
        with Image.open(BytesIO(content)) as img:
            img.load()
            image_format = img.format
            if image_format == "GIF" or max(img.size) <= max_dimension:
                return content
            img.thumbnail((max_dimension, max_dimension))
            out = BytesIO()
            img.save(out, format=image_format or "PNG")
            return out.getvalue()
    except OSError as e:
        raise InvalidInputError(
            "The uploaded file is not a readable image",
            field="image",
            context={"error": type(e).__name__},
        )


class LocalImageStorage(ImageStorage):
    name = "local"

    def __init__(self, storage_root: str, max_dimension: int = 1200):
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        self.max_dimension = max_dimension
        logger.info("LocalImageStorage initialized with storage_root=%s", self.storage_root)

    def _generate_storage_path(self, folder: str, extension: str) -> Tuple[Path, str]:
        """Return (absolute_path, relative_path) for a new UUID-named file."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{folder.strip('/')}/{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Map a relative path to a file inside storage_root.

        Returns None for paths escaping the root (`..`, absolute paths).
        """
        candidate = (self.storage_root / relative_path).resolve()
        if not candidate.is_relative_to(self.storage_root):
            return None
        return candidate

    async def upload(self, content: bytes, content_type: str, folder: str) -> str:
        extension = EXTENSIONS.get(content_type, ".img")
        resized = await asyncio.to_thread(downscale_image, content, self.max_dimension)
        absolute_path, relative_path = self._generate_storage_path(folder, extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(resized)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise UpstreamServiceError(
                message="Failed to save the uploaded image. Please try again.",
                service="storage",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", relative_path, len(resized))
        return f"{FILES_URL_PREFIX}{relative_path}"

    async def delete(self, reference: str) -> None:
        if not reference.startswith(FILES_URL_PREFIX):
            logger.debug("Ignoring non-local image reference: %s", reference)
            return
        path = self.resolve(reference[len(FILES_URL_PREFIX):])
        if path is None:
            logger.warning("Refusing to delete path outside storage root: %s", reference)
            return
        if path.exists():
            await asyncio.to_thread(os.remove, path)
            logger.info("Deleted image: %s", path.name)
        else:
            logger.debug("Delete: image already gone: %s", path.name)

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
