"""
ORM → response model conversion.

Every function reads only relationships the caller eager-loaded
(selectinload); touching an unloaded relationship in async code raises.
"""

from boxit.models import Box, Item, StorageRoom
from boxit.schemas.inventory import (
    BoxRef,
    BoxResponse,
    BoxSummary,
    ItemDetailResponse,
    ItemResponse,
    LabelResponse,
    PublicBox,
    PublicItem,
    StorageRoomResponse,
)


def item_response(item: Item) -> ItemResponse:
    return ItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        category=item.category,
        image_url=item.image_path,
        box_id=item.box_id,
        labels=[LabelResponse.model_validate(label) for label in item.labels],
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def item_detail_response(item: Item) -> ItemDetailResponse:
    return ItemDetailResponse(
        **item_response(item).model_dump(),
        box=BoxRef(id=item.box.id, name=item.box.name),
    )


def box_summary(box: Box) -> BoxSummary:
    return BoxSummary(
        id=box.id,
        name=box.name,
        qr_code=box.qr_code,
        storage_room_id=box.storage_room_id,
        item_count=len(box.items),
        created_at=box.created_at,
        updated_at=box.updated_at,
    )


def box_response(box: Box) -> BoxResponse:
    return BoxResponse(
        **box_summary(box).model_dump(),
        items=[item_response(item) for item in box.items],
    )


def room_response(room: StorageRoom) -> StorageRoomResponse:
    return StorageRoomResponse(
        id=room.id,
        name=room.name,
        box_count=len(room.boxes),
        boxes=[box_summary(box) for box in room.boxes],
        created_at=room.created_at,
        updated_at=room.updated_at,
    )


def public_box(box: Box) -> PublicBox:
    return PublicBox(
        name=box.name,
        qr_code=box.qr_code,
        items=[
            PublicItem(
                id=item.id,
                name=item.name,
                description=item.description,
                image_url=item.image_path,
                created_at=item.created_at,
            )
            for item in box.items
        ],
    )
