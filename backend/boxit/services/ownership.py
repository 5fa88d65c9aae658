"""
BoxIT Backend — Scoped Ownership Lookups
=========================================

What:  The authorization gate for every non-public resource access.
How:   Each finder is one query filtered by the resource id AND the
       ownership chain rooted at the caller:

           StorageRoom.user_id = :user
           Box → StorageRoom.user_id = :user
           Item → Box → StorageRoom.user_id = :user

       A resource that does not exist and one owned by someone else both
       come back as None, so both raise the same NotFoundError.
"""

import uuid
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.exceptions import NotFoundError
from boxit.models import Box, Item, StorageRoom


def owned_rooms(user_id: uuid.UUID):
    return select(StorageRoom).where(StorageRoom.user_id == user_id)


def owned_boxes(user_id: uuid.UUID):
    return (
        select(Box)
        .join(StorageRoom, Box.storage_room_id == StorageRoom.id)
        .where(StorageRoom.user_id == user_id)
    )


def owned_items(user_id: uuid.UUID):
    return (
        select(Item)
        .join(Box, Item.box_id == Box.id)
        .join(StorageRoom, Box.storage_room_id == StorageRoom.id)
        .where(StorageRoom.user_id == user_id)
    )


async def get_owned_room(
    db: AsyncSession,
    user_id: uuid.UUID,
    room_id: uuid.UUID,
    options: Sequence[Any] = (),
) -> StorageRoom:
    stmt = owned_rooms(user_id).where(StorageRoom.id == room_id).options(*options)
    room = (await db.execute(stmt.execution_options(populate_existing=True))).scalar_one_or_none()
    if room is None:
        raise NotFoundError(resource="storage room", resource_id=str(room_id))
    return room


async def get_owned_box(
    db: AsyncSession,
    user_id: uuid.UUID,
    box_id: uuid.UUID,
    options: Sequence[Any] = (),
) -> Box:
    stmt = owned_boxes(user_id).where(Box.id == box_id).options(*options)
    box = (await db.execute(stmt.execution_options(populate_existing=True))).scalar_one_or_none()
    if box is None:
        raise NotFoundError(resource="box", resource_id=str(box_id))
    return box


async def get_owned_item(
    db: AsyncSession,
    user_id: uuid.UUID,
    item_id: uuid.UUID,
    options: Sequence[Any] = (),
) -> Item:
    stmt = owned_items(user_id).where(Item.id == item_id).options(*options)
    item = (await db.execute(stmt.execution_options(populate_existing=True))).scalar_one_or_none()
    if item is None:
        raise NotFoundError(resource="item", resource_id=str(item_id))
    return item
