"""
BoxIT Backend — Search Service
===============================

What:  One free-text query across the caller's items, boxes and rooms.

Matching:
    Case-insensitive substring containment, `%` and `_` in the query match
    literally.
        items:         name, description, category, or any label name
        boxes:         name
        storage rooms: name
    No ranking and no pagination. A blank query returns an empty result
    without touching the database.
"""

import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boxit.models import Box, Item, ItemLabel, Label, StorageRoom
from boxit.schemas.inventory import SearchBoxHit, SearchItemHit, SearchResponse, SearchRoomHit
from boxit.services.ownership import owned_boxes, owned_items, owned_rooms
from boxit.services.serializers import item_response

logger = logging.getLogger(__name__)


def contains_ci(column, term: str):
    """Case-insensitive LIKE '%term%' with wildcards in `term` escaped."""
    return func.lower(column).contains(term.lower(), autoescape=True)


class SearchService:

    async def search(self, db: AsyncSession, user_id: uuid.UUID, query: str) -> SearchResponse:
        term = (query or "").strip()
        if not term:
            return SearchResponse()

        labelled_items = (
            select(ItemLabel.item_id)
            .join(Label, ItemLabel.label_id == Label.id)
            .where(Label.user_id == user_id, contains_ci(Label.name, term))
        )
        item_rows = await db.execute(
            owned_items(user_id)
            .where(
                or_(
                    contains_ci(Item.name, term),
                    contains_ci(Item.description, term),
                    contains_ci(Item.category, term),
                    Item.id.in_(labelled_items),
                )
            )
            .options(
                selectinload(Item.labels),
                selectinload(Item.box).selectinload(Box.storage_room),
            )
            .order_by(Item.updated_at.desc())
        )
        items = [
            SearchItemHit(
                **item_response(item).model_dump(),
                box_name=item.box.name,
                storage_room_id=item.box.storage_room_id,
                storage_room_name=item.box.storage_room.name,
            )
            for item in item_rows.scalars()
        ]

        box_rows = await db.execute(
            owned_boxes(user_id)
            .where(contains_ci(Box.name, term))
            .options(selectinload(Box.items), selectinload(Box.storage_room))
            .order_by(Box.updated_at.desc())
        )
        boxes = [
            SearchBoxHit(
                id=box.id,
                name=box.name,
                qr_code=box.qr_code,
                item_count=len(box.items),
                storage_room_id=box.storage_room_id,
                storage_room_name=box.storage_room.name,
            )
            for box in box_rows.scalars()
        ]

        room_rows = await db.execute(
            owned_rooms(user_id)
            .where(contains_ci(StorageRoom.name, term))
            .options(selectinload(StorageRoom.boxes))
            .order_by(StorageRoom.updated_at.desc())
        )
        rooms = [
            SearchRoomHit(id=room.id, name=room.name, box_count=len(room.boxes))
            for room in room_rows.scalars()
        ]

        logger.debug(
            "Search '%s' for user %s: %d items, %d boxes, %d rooms",
            term, user_id, len(items), len(boxes), len(rooms),
        )
        return SearchResponse(items=items, boxes=boxes, storage_rooms=rooms)


search_service = SearchService()
