"""
BoxIT Backend — Item Service
=============================

What:  Create, read, update (including moves between boxes) and delete of
       the caller's items, with labels and image lifecycle.
Who:   Called by routes/items.py.

Update workflow:
    1. Load the item through the ownership chain      (NotFound otherwise)
    2. Resolve the destination box, if any            (NotFound otherwise;
                                                       nothing changed yet)
    3. Upload the replacement image, if any
    4. Apply metadata (category only when the form carried it), image
       reference, box and labels; flush
         on failure: delete the freshly uploaded image, re-raise
    5. Once the request transaction commits, delete the previous image
       best-effort when it was replaced or an explicit delete was requested

    Form fields and the image's type and size were already validated at
    the HTTP boundary (ItemForm, read_image_upload), so every InvalidInput
    rejection happens before step 1.

    Uploading before removing the old image means a failed upload leaves
    the item with its previous picture.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boxit.models import Item
from boxit.schemas.inventory import ItemDetailResponse, ItemForm, ItemResponse, ItemUpdateResponse
from boxit.services.image_service import ImageUpload
from boxit.services.label_service import label_service
from boxit.services.ownership import get_owned_box, get_owned_item
from boxit.services.serializers import item_detail_response, item_response
from boxit.services.storage_base import ImageStorage, delete_after_commit, delete_quietly

logger = logging.getLogger(__name__)

ITEM_WITH_RELATIONS = (selectinload(Item.labels), selectinload(Item.box))


class ItemService:

    async def get_item(
        self, db: AsyncSession, user_id: uuid.UUID, item_id: uuid.UUID
    ) -> ItemDetailResponse:
        item = await get_owned_item(db, user_id, item_id, options=ITEM_WITH_RELATIONS)
        return item_detail_response(item)

    async def _reload(self, db: AsyncSession, user_id: uuid.UUID, item_id: uuid.UUID) -> ItemResponse:
        item = await get_owned_item(db, user_id, item_id, options=ITEM_WITH_RELATIONS)
        return item_response(item)

    async def create_item(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        user_id: uuid.UUID,
        box_id: uuid.UUID,
        form: ItemForm,
        image: Optional[ImageUpload],
        folder: str,
    ) -> ItemResponse:
        box = await get_owned_box(db, user_id, box_id)

        image_ref = None
        if image is not None:
            image_ref = await storage.upload(image.content, image.content_type, folder)

        try:
            item = Item(
                box_id=box.id,
                name=form.name,
                description=form.description,
                category=form.category,
                image_path=image_ref,
            )
            db.add(item)
            await db.flush()
            if form.labels:
                await label_service.reconcile_item_labels(db, item.id, user_id, form.labels)
        except Exception:
            await delete_quietly(storage, image_ref)
            raise

        logger.info("Item created: %s in box %s", item.id, box.id)
        return await self._reload(db, user_id, item.id)

    async def update_item(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        form: ItemForm,
        image: Optional[ImageUpload],
        folder: str,
    ) -> ItemUpdateResponse:
        item = await get_owned_item(db, user_id, item_id)

        destination_id = None
        if form.destination_box_id is not None and form.destination_box_id != item.box_id:
            destination = await get_owned_box(db, user_id, form.destination_box_id)
            destination_id = destination.id

        previous_ref = item.image_path
        new_ref = None
        if image is not None:
            new_ref = await storage.upload(image.content, image.content_type, folder)

        try:
            item.name = form.name
            item.description = form.description
            if form.category_sent:
                item.category = form.category
            if new_ref is not None:
                item.image_path = new_ref
            elif form.delete_image:
                item.image_path = None
            if destination_id is not None:
                item.box_id = destination_id
            await db.flush()

            if form.labels is not None:
                await label_service.reconcile_item_labels(db, item.id, user_id, form.labels)
        except Exception:
            await delete_quietly(storage, new_ref)
            raise

        if previous_ref and previous_ref != item.image_path:
            delete_after_commit(db, storage, previous_ref)

        moved = destination_id is not None
        if moved:
            logger.info("Item %s moved to box %s", item.id, destination_id)
        return ItemUpdateResponse(item=await self._reload(db, user_id, item.id), moved=moved)

    async def delete_item(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> None:
        item = await get_owned_item(db, user_id, item_id)
        image_ref = item.image_path
        await db.delete(item)
        await db.flush()
        logger.info("Item deleted: %s", item_id)
        delete_after_commit(db, storage, image_ref)


item_service = ItemService()
