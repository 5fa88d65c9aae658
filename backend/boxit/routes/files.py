"""
BoxIT Backend — Local Image Files Route
========================================

What:  GET /api/files/{path} serves images written by LocalImageStorage.
Who:   <img> tags pointing at an item's image_url when the local storage
       backend is active. With Cloudinary, image URLs point at the CDN and
       this route answers 404.
"""

import logging
import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from boxit.dependencies import get_storage
from boxit.exceptions import InvalidInputError, NotFoundError
from boxit.schemas.common import ErrorResponse
from boxit.services.local_storage import LocalImageStorage
from boxit.services.storage_base import ImageStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Path outside the storage root", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(
    file_path: str,
    storage: ImageStorage = Depends(get_storage),
) -> FileResponse:
    if not isinstance(storage, LocalImageStorage):
        raise NotFoundError(resource="file")

    full_path = storage.resolve(file_path)
    if full_path is None:
        raise InvalidInputError("Invalid file path", field="file_path")
    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type = mimetypes.guess_type(full_path.name)[0] or "application/octet-stream"
    return FileResponse(
        path=str(full_path),
        media_type=media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
