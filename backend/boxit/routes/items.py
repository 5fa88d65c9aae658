"""
BoxIT Backend — Item Routes
============================

Route Inventory:
    POST   /api/boxes/{box_id}/items   create an item (multipart)
    GET    /api/items/{id}             item with labels and its box
    PATCH  /api/items/{id}             update, move, relabel, replace image
    DELETE /api/items/{id}             delete the item and its image

Multipart fields (create and update):
    name                 required
    description          optional
    category             optional legacy free text
    labels               JSON array of strings; omitted on update = unchanged
    image                optional JPEG/PNG/WebP/GIF, at most 5 MiB
    delete_image         "true" removes the current image (update only)
    destination_box_id   move to another owned box (update only)

The form is parsed into ItemForm and the image validated before the
service runs, so InvalidInput never follows a mutation.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id, get_settings, get_storage
from boxit.schemas.common import ErrorResponse
from boxit.schemas.inventory import ItemDetailResponse, ItemForm, ItemResponse, ItemUpdateResponse
from boxit.services.image_service import ImageUpload, read_image_upload
from boxit.services.item_service import item_service
from boxit.services.storage_base import ImageStorage

router = APIRouter(prefix="/api", tags=["Items"])

ITEM_ERRORS = {
    400: {"description": "Invalid form field or image", "model": ErrorResponse},
    404: {"description": "Item or box not found", "model": ErrorResponse},
    503: {"description": "Image storage unavailable", "model": ErrorResponse},
}


def item_form(
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    labels: Optional[str] = Form(default=None, description='JSON array, e.g. ["Fragile","Heavy"]'),
    delete_image: Optional[str] = Form(default=None),
    destination_box_id: Optional[str] = Form(default=None),
) -> ItemForm:
    return ItemForm.from_form(
        name=name,
        description=description,
        category=category,
        labels=labels,
        delete_image=delete_image,
        destination_box_id=destination_box_id,
    )


async def image_upload(
    image: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_settings),
) -> Optional[ImageUpload]:
    return await read_image_upload(image, settings.max_image_size)


@router.post(
    "/boxes/{box_id}/items",
    response_model=ItemResponse,
    status_code=201,
    responses=ITEM_ERRORS,
    summary="Add an item to a box",
)
async def create_item(
    box_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    form: ItemForm = Depends(item_form),
    image: Optional[ImageUpload] = Depends(image_upload),
    settings: Settings = Depends(get_settings),
    storage: ImageStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> ItemResponse:
    return await item_service.create_item(
        db, storage, user_id, box_id, form, image, folder=settings.storage_folder
    )


@router.get("/items/{item_id}", response_model=ItemDetailResponse, responses=ITEM_ERRORS, summary="Get an item")
async def get_item(
    item_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ItemDetailResponse:
    return await item_service.get_item(db, user_id, item_id)


@router.patch(
    "/items/{item_id}",
    response_model=ItemUpdateResponse,
    responses=ITEM_ERRORS,
    summary="Update an item",
    description="Updates fields, labels and image; moves the item when destination_box_id names another box.",
)
async def update_item(
    item_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    form: ItemForm = Depends(item_form),
    image: Optional[ImageUpload] = Depends(image_upload),
    settings: Settings = Depends(get_settings),
    storage: ImageStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> ItemUpdateResponse:
    return await item_service.update_item(
        db, storage, user_id, item_id, form, image, folder=settings.storage_folder
    )


@router.delete("/items/{item_id}", status_code=204, response_class=Response, responses=ITEM_ERRORS, summary="Delete an item")
async def delete_item(
    item_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    storage: ImageStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await item_service.delete_item(db, storage, user_id, item_id)
    return Response(status_code=204)
