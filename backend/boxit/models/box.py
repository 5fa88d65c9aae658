"""
BoxIT Backend — Box Model
==========================

What:  Mid-level container inside a StorageRoom, holding Items.

QR code:
    `qr_code` is a short random string drawn from a URL-safe alphabet and
    is the only key of the public, unauthenticated box view. It must be
    unique across all users; the unique index is the source of truth and
    the box service regenerates once when an insert collides.
"""

import uuid
from typing import List

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxit.database import Base
from boxit.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Box(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "boxes"

    storage_room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("storage_rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    qr_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    storage_room: Mapped["StorageRoom"] = relationship(back_populates="boxes")
    items: Mapped[List["Item"]] = relationship(
        back_populates="box",
        cascade="all, delete-orphan",
        order_by="Item.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Box(id={self.id}, name='{self.name}', qr_code='{self.qr_code}')>"
