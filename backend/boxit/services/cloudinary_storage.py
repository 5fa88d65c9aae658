"""
BoxIT Backend — Cloudinary Image Storage
=========================================

What:  ImageStorage backend on the official Cloudinary SDK.
How:
    upload: cloudinary.uploader.upload with an incoming transformation
            (fit within 1200x1200, automatic quality), returns `secure_url`
    delete: derives the public id from the URL and calls
            cloudinary.uploader.destroy

    The SDK is synchronous; both calls run in a worker thread under the
    shared tenacity policy in services.upstream. Every SDK error is
    retried, and exhausted retries become UpstreamServiceError.
"""

import io
import logging
import re
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from tenacity import RetryError, retry_if_exception_type

from boxit.config import Settings
from boxit.exceptions import UpstreamServiceError
from boxit.services.storage_base import ImageStorage
from boxit.services.upstream import call_with_retry

logger = logging.getLogger(__name__)

RETRY_ON = retry_if_exception_type(CloudinaryError)


def public_id_from_url(url: str) -> Optional[str]:
    """
    Extract the public id from a Cloudinary delivery URL.

    https://res.cloudinary.com/demo/image/upload/v1712/boxit/items/abc.jpg
        → "boxit/items/abc"
    """
    if "/upload/" not in url:
        return None
    path = url.split("?", 1)[0]
    tail = path.split("/upload/", 1)[1]
    segments = tail.split("/")
    # Drop transformation segments and the version marker preceding the id
    for index, segment in enumerate(segments):
        if re.fullmatch(r"v\d+", segment):
            segments = segments[index + 1:]
            break
    public_id = "/".join(segments)
    if "." in segments[-1]:
        public_id = public_id.rsplit(".", 1)[0]
    return public_id or None


class CloudinaryImageStorage(ImageStorage):
    name = "cloudinary"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.cloud_name = settings.cloudinary_cloud_name
        # The SDK keeps credentials in module-level configuration
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.transformation = [
            {
                "width": settings.image_max_dimension,
                "height": settings.image_max_dimension,
                "crop": "limit",
            },
            {"quality": "auto:good"},
        ]

    async def _call(self, action: str, func, *args, **kwargs) -> Dict[str, Any]:
        try:
            return await call_with_retry(self.settings, RETRY_ON, func, *args, **kwargs)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("Cloudinary %s failed after retries: %s", action, str(last))
            raise UpstreamServiceError(
                message="Image storage is temporarily unavailable. Please try again later.",
                service="storage",
                context={"action": action, "error": str(last)},
            )

    async def upload(self, content: bytes, content_type: str, folder: str) -> str:
        def upload_once() -> Dict[str, Any]:
            # A fresh stream per attempt; the SDK consumes it
            return cloudinary.uploader.upload(
                io.BytesIO(content),
                folder=folder,
                resource_type="image",
                transformation=self.transformation,
                timeout=self.settings.upstream_timeout_seconds,
            )

        result = await self._call("upload", upload_once)

        secure_url = result.get("secure_url")
        if not secure_url:
            raise UpstreamServiceError(
                message="Image storage returned no URL for the upload.",
                service="storage",
            )
        logger.info("Image uploaded to Cloudinary: %s (%d bytes)", secure_url, len(content))
        return secure_url

    async def delete(self, reference: str) -> None:
        public_id = public_id_from_url(reference)
        if not public_id:
            logger.debug("Ignoring non-Cloudinary image reference: %s", reference)
            return
        result = await self._call(
            "destroy",
            cloudinary.uploader.destroy,
            public_id,
            timeout=self.settings.upstream_timeout_seconds,
        )
        logger.info("Cloudinary destroy %s: %s", public_id, result.get("result"))

    async def health_check(self) -> bool:
        return bool(
            self.cloud_name
            and self.settings.cloudinary_api_key
            and self.settings.cloudinary_api_secret
        )
