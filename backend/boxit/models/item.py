"""
BoxIT Backend — Item Model
===========================

What:  Leaf entity: a thing stored in a Box, with an optional photo and
       any number of labels.

Columns of note:
    image_path: reference returned by the image storage backend
                (a /api/files/... path or a Cloudinary secure URL)
    category:   legacy free-text grouping kept alongside labels
"""

import uuid
from typing import List, Optional

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxit.database import Base
from boxit.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Item(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "items"

    box_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("boxes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    box: Mapped["Box"] = relationship(back_populates="items")

    # Join rows own the association; `labels` is a read-only view over them.
    item_labels: Mapped[List["ItemLabel"]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
    )
    labels: Mapped[List["Label"]] = relationship(
        secondary="item_labels",
        viewonly=True,
        order_by="Label.name",
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', box_id={self.box_id})>"
