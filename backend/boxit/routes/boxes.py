"""
BoxIT Backend — Box Routes
===========================

Route Inventory:
    GET    /api/boxes              list the caller's boxes (?search=)
    POST   /api/boxes              create a box in an owned room
    GET    /api/boxes/{id}         box with its items and their labels
    PATCH  /api/boxes/{id}         rename
    DELETE /api/boxes/{id}         delete with its items
    GET    /api/boxes/{id}/qr      QR image pointing at the public box page
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id, get_qr_renderer, get_settings, get_storage
from boxit.schemas.common import ErrorResponse
from boxit.schemas.inventory import BoxCreate, BoxListResponse, BoxQRResponse, BoxResponse, BoxUpdate
from boxit.services.box_service import box_service
from boxit.services.qr_service import QRRenderer
from boxit.services.storage_base import ImageStorage

router = APIRouter(prefix="/api/boxes", tags=["Boxes"])

NOT_FOUND = {404: {"description": "Box not found", "model": ErrorResponse}}


@router.get("", response_model=BoxListResponse, summary="List boxes")
async def list_boxes(
    search: str = Query(default="", max_length=200, description="Match box name or item text"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoxListResponse:
    return await box_service.list_boxes(db, user_id, search=search)


@router.post(
    "",
    response_model=BoxResponse,
    status_code=201,
    responses={
        404: {"description": "Storage room not found", "model": ErrorResponse},
        409: {"description": "QR code collision", "model": ErrorResponse},
    },
    summary="Create a box",
)
async def create_box(
    payload: BoxCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> BoxResponse:
    return await box_service.create_box(
        db, user_id, payload.storage_room_id, payload.name, qr_code_length=settings.qr_code_length
    )


@router.get("/{box_id}", response_model=BoxResponse, responses=NOT_FOUND, summary="Get a box")
async def get_box(
    box_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoxResponse:
    return await box_service.get_box(db, user_id, box_id)


@router.patch("/{box_id}", response_model=BoxResponse, responses=NOT_FOUND, summary="Rename a box")
async def update_box(
    box_id: uuid.UUID,
    payload: BoxUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoxResponse:
    return await box_service.rename_box(db, user_id, box_id, payload.name)


@router.delete("/{box_id}", status_code=204, response_class=Response, responses=NOT_FOUND, summary="Delete a box")
async def delete_box(
    box_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    storage: ImageStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await box_service.delete_box(db, storage, user_id, box_id)
    return Response(status_code=204)


@router.get(
    "/{box_id}/qr",
    response_model=BoxQRResponse,
    responses={**NOT_FOUND, 503: {"description": "QR rendering failed", "model": ErrorResponse}},
    summary="Render the box's QR code",
    description=(
        "Returns a PNG data URI encoding {origin}/box/{qr_code}. The origin is the "
        "request's Origin header, or PUBLIC_BASE_URL when absent."
    ),
)
async def get_box_qr(
    box_id: uuid.UUID,
    request: Request,
    user_id: uuid.UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    renderer: QRRenderer = Depends(get_qr_renderer),
    db: AsyncSession = Depends(get_db_session),
) -> BoxQRResponse:
    origin = request.headers.get("origin") or settings.public_base_url
    return await box_service.render_qr(db, renderer, user_id, box_id, origin)
