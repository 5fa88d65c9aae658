"""
BoxIT Backend — Storage Room Service
=====================================

What:  CRUD over the caller's storage rooms.
Who:   Called by routes/storage_rooms.py.

Deleting a room cascades (ORM and ON DELETE CASCADE) to its boxes, their
items and item/label links. Image references of the removed items are
collected first and deleted from object storage after the flush,
best-effort.
"""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boxit.models import Box, Item, StorageRoom
from boxit.schemas.inventory import (
    StorageRoomCreate,
    StorageRoomListResponse,
    StorageRoomResponse,
    StorageRoomUpdate,
)
from boxit.services.ownership import get_owned_room, owned_rooms
from boxit.services.serializers import room_response
from boxit.services.storage_base import ImageStorage, delete_after_commit

logger = logging.getLogger(__name__)

ROOM_WITH_BOXES = (selectinload(StorageRoom.boxes).selectinload(Box.items),)


class StorageRoomService:

    async def list_rooms(self, db: AsyncSession, user_id: uuid.UUID) -> StorageRoomListResponse:
        result = await db.execute(
            owned_rooms(user_id)
            .options(*ROOM_WITH_BOXES)
            .order_by(StorageRoom.updated_at.desc())
        )
        return StorageRoomListResponse(
            storage_rooms=[room_response(room) for room in result.scalars()]
        )

    async def get_room(
        self, db: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID
    ) -> StorageRoomResponse:
        room = await get_owned_room(db, user_id, room_id, options=ROOM_WITH_BOXES)
        return room_response(room)

    async def create_room(
        self, db: AsyncSession, user_id: uuid.UUID, payload: StorageRoomCreate
    ) -> StorageRoomResponse:
        room = StorageRoom(user_id=user_id, name=payload.name)
        db.add(room)
        await db.flush()
        logger.info("Storage room created: %s", room.id)
        return await self.get_room(db, user_id, room.id)

    async def update_room(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        room_id: uuid.UUID,
        payload: StorageRoomUpdate,
    ) -> StorageRoomResponse:
        room = await get_owned_room(db, user_id, room_id)
        room.name = payload.name
        await db.flush()
        return await self.get_room(db, user_id, room_id)

    async def delete_room(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        user_id: uuid.UUID,
        room_id: uuid.UUID,
    ) -> None:
        room = await get_owned_room(db, user_id, room_id)
        image_refs = await self._image_refs(db, room_id)

        await db.delete(room)
        await db.flush()
        logger.info("Storage room deleted: %s (%d images to clean up)", room_id, len(image_refs))

        for reference in image_refs:
            delete_after_commit(db, storage, reference)

    async def _image_refs(self, db: AsyncSession, room_id: uuid.UUID) -> List[str]:
        result = await db.execute(
            select(Item.image_path)
            .join(Box, Item.box_id == Box.id)
            .where(Box.storage_room_id == room_id, Item.image_path.is_not(None))
        )
        return list(result.scalars())


storage_room_service = StorageRoomService()
