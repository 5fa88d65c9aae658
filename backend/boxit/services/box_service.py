"""
BoxIT Backend — Box Service
============================

What:  CRUD over the caller's boxes, QR identity generation, the rendered
       QR image and the public lookup by QR code.
Who:   Called by routes/boxes.py, routes/storage_rooms.py and
       routes/public.py.

QR identity:
    A box's `qr_code` is `qr_code_length` characters drawn with `secrets`
    from the URL-safe alphabet A-Z a-z 0-9 _ -. Uniqueness is not
    pre-checked; the unique index rejects a collision, the transaction is
    rolled back and creation is retried once with a fresh code. A second
    collision surfaces as ConflictError.
"""

import logging
import secrets
import string
import uuid
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boxit.exceptions import ConflictError, NotFoundError
from boxit.models import Box, Item
from boxit.schemas.inventory import BoxListResponse, BoxQRResponse, BoxResponse, PublicBoxResponse
from boxit.services.ownership import get_owned_box, get_owned_room, owned_boxes
from boxit.services.qr_service import QRRenderer
from boxit.services.search_service import contains_ci
from boxit.services.serializers import box_response, public_box
from boxit.services.storage_base import ImageStorage, delete_after_commit

logger = logging.getLogger(__name__)

QR_ALPHABET = string.ascii_letters + string.digits + "_-"

BOX_WITH_ITEMS = (selectinload(Box.items).selectinload(Item.labels),)

CREATE_ATTEMPTS = 2


def generate_qr_code(length: int = 10) -> str:
    return "".join(secrets.choice(QR_ALPHABET) for _ in range(length))


def public_box_url(origin: str, qr_code: str) -> str:
    return f"{origin.rstrip('/')}/box/{qr_code}"


class BoxService:

    async def list_boxes(
        self, db: AsyncSession, user_id: uuid.UUID, search: str = "", room_id: Optional[uuid.UUID] = None
    ) -> BoxListResponse:
        """
        The caller's boxes, most recently updated first.

        `search` matches the box name or the name, description or category
        of any item inside (case-insensitive substring).
        """
        stmt = owned_boxes(user_id).options(*BOX_WITH_ITEMS).order_by(Box.updated_at.desc())
        if room_id is not None:
            await get_owned_room(db, user_id, room_id)
            stmt = stmt.where(Box.storage_room_id == room_id)

        term = search.strip()
        if term:
            matching_items = (
                select(Item.box_id)
                .where(
                    or_(
                        contains_ci(Item.name, term),
                        contains_ci(Item.description, term),
                        contains_ci(Item.category, term),
                    )
                )
            )
            stmt = stmt.where(or_(contains_ci(Box.name, term), Box.id.in_(matching_items)))

        result = await db.execute(stmt)
        return BoxListResponse(boxes=[box_response(box) for box in result.scalars()])

    async def get_box(self, db: AsyncSession, user_id: uuid.UUID, box_id: uuid.UUID) -> BoxResponse:
        box = await get_owned_box(db, user_id, box_id, options=BOX_WITH_ITEMS)
        return box_response(box)

    async def create_box(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        room_id: uuid.UUID,
        name: str,
        qr_code_length: int = 10,
    ) -> BoxResponse:
        """
        Create a box in an owned room.

        Raises:
            NotFoundError: room missing or not owned by user_id
            ConflictError: QR code collided twice in a row
        """
        await get_owned_room(db, user_id, room_id)

        for attempt in range(1, CREATE_ATTEMPTS + 1):
            box = Box(storage_room_id=room_id, name=name, qr_code=generate_qr_code(qr_code_length))
            db.add(box)
            try:
                await db.flush()
            except IntegrityError as e:
                await db.rollback()
                logger.warning(
                    "Box insert rejected by a unique constraint (attempt %d/%d): %s",
                    attempt,
                    CREATE_ATTEMPTS,
                    str(e.orig),
                )
                continue
            logger.info("Box created: %s (qr_code=%s)", box.id, box.qr_code)
            return await self.get_box(db, user_id, box.id)

        raise ConflictError(
            message="Could not allocate a unique QR code for the box. Please try again.",
            context={"room_id": str(room_id)},
        )

    async def rename_box(
        self, db: AsyncSession, user_id: uuid.UUID, box_id: uuid.UUID, name: str
    ) -> BoxResponse:
        box = await get_owned_box(db, user_id, box_id)
        box.name = name
        await db.flush()
        return await self.get_box(db, user_id, box_id)

    async def delete_box(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        user_id: uuid.UUID,
        box_id: uuid.UUID,
    ) -> None:
        box = await get_owned_box(db, user_id, box_id)
        image_refs: List[str] = list(
            (
                await db.execute(
                    select(Item.image_path).where(Item.box_id == box_id, Item.image_path.is_not(None))
                )
            ).scalars()
        )

        await db.delete(box)
        await db.flush()
        logger.info("Box deleted: %s (%d images to clean up)", box_id, len(image_refs))

        for reference in image_refs:
            delete_after_commit(db, storage, reference)

    async def render_qr(
        self,
        db: AsyncSession,
        renderer: QRRenderer,
        user_id: uuid.UUID,
        box_id: uuid.UUID,
        origin: str,
    ) -> BoxQRResponse:
        box = await get_owned_box(db, user_id, box_id)
        url = public_box_url(origin, box.qr_code)
        image = await renderer.render_data_uri(url)
        return BoxQRResponse(qr_code=box.qr_code, url=url, qr_code_image=image)

    async def get_public_box(self, db: AsyncSession, qr_code: str) -> PublicBoxResponse:
        """
        Unauthenticated lookup keyed only by the QR code.

        Unknown and malformed codes raise the same NotFoundError.
        """
        result = await db.execute(
            select(Box).where(Box.qr_code == qr_code).options(selectinload(Box.items))
        )
        box = result.scalar_one_or_none()
        if box is None:
            raise NotFoundError(resource="box")
        return PublicBoxResponse(box=public_box(box))


box_service = BoxService()
