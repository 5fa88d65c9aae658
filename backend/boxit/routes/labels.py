"""GET /api/labels: the caller's label vocabulary, for autocomplete."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id
from boxit.schemas.inventory import LabelListResponse
from boxit.services.label_service import label_service

router = APIRouter(prefix="/api", tags=["Labels"])


@router.get("/labels", response_model=LabelListResponse, summary="List labels")
async def list_labels(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LabelListResponse:
    return await label_service.list_labels(db, user_id)
