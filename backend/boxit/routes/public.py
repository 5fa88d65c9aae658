"""
BoxIT Backend — Public Box View
================================

What:  GET /api/public/boxes/{qr_code}, the page a scanned QR code opens.
       Requires no session and returns only the box name, its code and its
       items. Unknown codes of any length or shape get the generic not-found
       reply.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.database import get_db_session
from boxit.schemas.common import ErrorResponse
from boxit.schemas.inventory import PublicBoxResponse
from boxit.services.box_service import box_service

router = APIRouter(prefix="/api/public", tags=["Public"])


@router.get(
    "/boxes/{qr_code}",
    response_model=PublicBoxResponse,
    responses={404: {"description": "Box not found", "model": ErrorResponse}},
    summary="View a box by its QR code",
)
async def get_public_box(
    qr_code: str,
    db: AsyncSession = Depends(get_db_session),
) -> PublicBoxResponse:
    return await box_service.get_public_box(db, qr_code)
