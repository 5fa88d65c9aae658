"""GET /api/search?q=: items, boxes and rooms matching a free-text query."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id
from boxit.schemas.inventory import SearchResponse
from boxit.services.search_service import search_service

router = APIRouter(prefix="/api", tags=["Search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search the inventory",
    description=(
        "Case-insensitive substring search over item name, description, category "
        "and labels, box names and room names. An empty query returns empty lists."
    ),
)
async def search(
    q: str = Query(default="", max_length=200),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SearchResponse:
    return await search_service.search(db, user_id, q)
