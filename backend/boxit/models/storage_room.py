"""
BoxIT Backend — StorageRoom Model
==================================

What:  Top-level container (garage, attic, basement) owned by one user.
       Deleting a room deletes its boxes, their items and label links.
"""

import uuid
from typing import List

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxit.database import Base
from boxit.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class StorageRoom(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "storage_rooms"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    user: Mapped["User"] = relationship(back_populates="storage_rooms")
    boxes: Mapped[List["Box"]] = relationship(
        back_populates="storage_room",
        cascade="all, delete-orphan",
        order_by="Box.updated_at.desc()",
    )

    # Every list query filters by owner and sorts by recency
    __table_args__ = (
        Index("idx_storage_rooms_user_updated", "user_id", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<StorageRoom(id={self.id}, name='{self.name}')>"
