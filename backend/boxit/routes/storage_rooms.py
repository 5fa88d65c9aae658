"""
BoxIT Backend — Storage Room Routes
====================================

Route Inventory:
    GET    /api/storage-rooms                  list rooms with their boxes
    POST   /api/storage-rooms                  create a room
    GET    /api/storage-rooms/{id}             room detail
    PATCH  /api/storage-rooms/{id}             rename
    DELETE /api/storage-rooms/{id}             delete with boxes and items
    GET    /api/storage-rooms/{id}/boxes       boxes of one room (?search=)
    POST   /api/storage-rooms/{id}/boxes       create a box in the room
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id, get_settings, get_storage
from boxit.schemas.common import ErrorResponse
from boxit.schemas.inventory import (
    BoxCreateInRoom,
    BoxListResponse,
    BoxResponse,
    StorageRoomCreate,
    StorageRoomListResponse,
    StorageRoomResponse,
    StorageRoomUpdate,
)
from boxit.services.box_service import box_service
from boxit.services.storage_base import ImageStorage
from boxit.services.storage_room_service import storage_room_service

router = APIRouter(prefix="/api/storage-rooms", tags=["Storage Rooms"])

NOT_FOUND = {404: {"description": "Room not found", "model": ErrorResponse}}


@router.get("", response_model=StorageRoomListResponse, summary="List storage rooms")
async def list_rooms(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StorageRoomListResponse:
    return await storage_room_service.list_rooms(db, user_id)


@router.post("", response_model=StorageRoomResponse, status_code=201, summary="Create a storage room")
async def create_room(
    payload: StorageRoomCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StorageRoomResponse:
    return await storage_room_service.create_room(db, user_id, payload)


@router.get("/{room_id}", response_model=StorageRoomResponse, responses=NOT_FOUND, summary="Get a storage room")
async def get_room(
    room_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StorageRoomResponse:
    return await storage_room_service.get_room(db, user_id, room_id)


@router.patch("/{room_id}", response_model=StorageRoomResponse, responses=NOT_FOUND, summary="Rename a storage room")
async def update_room(
    room_id: uuid.UUID,
    payload: StorageRoomUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StorageRoomResponse:
    return await storage_room_service.update_room(db, user_id, room_id, payload)


@router.delete(
    "/{room_id}",
    status_code=204,
    response_class=Response,
    responses=NOT_FOUND,
    summary="Delete a storage room",
    description="Deletes the room, its boxes and their items. Item images are removed best-effort.",
)
async def delete_room(
    room_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    storage: ImageStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await storage_room_service.delete_room(db, storage, user_id, room_id)
    return Response(status_code=204)


@router.get("/{room_id}/boxes", response_model=BoxListResponse, responses=NOT_FOUND, summary="List boxes in a room")
async def list_room_boxes(
    room_id: uuid.UUID,
    search: str = Query(default="", max_length=200, description="Match box or item text"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoxListResponse:
    return await box_service.list_boxes(db, user_id, search=search, room_id=room_id)


@router.post(
    "/{room_id}/boxes",
    response_model=BoxResponse,
    status_code=201,
    responses={**NOT_FOUND, 409: {"description": "QR code collision", "model": ErrorResponse}},
    summary="Create a box in a room",
)
async def create_room_box(
    room_id: uuid.UUID,
    payload: BoxCreateInRoom,
    user_id: uuid.UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> BoxResponse:
    return await box_service.create_box(
        db, user_id, room_id, payload.name, qr_code_length=settings.qr_code_length
    )
