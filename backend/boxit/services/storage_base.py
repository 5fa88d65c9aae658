"""
BoxIT Backend — Image Storage Interface
========================================

What:  Abstract contract for object storage backends.
Who:   Item, box and room services depend on this interface only; the
       concrete backend (local disk or Cloudinary) is chosen from settings
       in create_app().

Contract:
    upload(content, content_type, folder) -> durable, retrievable reference
    delete(reference)                     -> raises on failure; callers that
                                             want best-effort use delete_quietly
                                             or delete_after_commit
    health_check()                        -> True when the backend is usable
"""

import logging
from abc import ABC, abstractmethod
from functools import partial
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boxit.database import run_after_commit

logger = logging.getLogger(__name__)


class ImageStorage(ABC):
    """Abstract base class for image storage backends."""

    name = "abstract"

    @abstractmethod
    async def upload(self, content: bytes, content_type: str, folder: str) -> str:
        """
        Store an already validated image and return its reference.

        Raises:
            InvalidInputError:    the bytes are not a decodable image
            UpstreamServiceError: the backend could not store the image
        """
        ...

    @abstractmethod
    async def delete(self, reference: str) -> None:
        """Remove a previously uploaded image. Unknown references are ignored."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def aclose(self) -> None:
        """Release network clients; no-op for backends without any."""
        return None


async def delete_quietly(storage: ImageStorage, reference: Optional[str]) -> None:
    """
    Best-effort delete: failures are logged and never raised.

    Called directly only for compensating deletes of an upload whose
    metadata write failed. Images that committed rows stop referencing go
    through delete_after_commit instead.
    """
    if not reference:
        return
    try:
        await storage.delete(reference)
    except Exception as e:
        logger.warning(
            "Failed to delete image %s from %s storage: %s",
            reference,
            storage.name,
            str(e),
        )


def delete_after_commit(db: AsyncSession, storage: ImageStorage, reference: Optional[str]) -> None:
    """
    Schedule a best-effort delete for after the request transaction commits.

    Skipped when the transaction rolls back, so a surviving row never
    points at a deleted image.
    """
    if reference:
        run_after_commit(db, partial(delete_quietly, storage, reference))
