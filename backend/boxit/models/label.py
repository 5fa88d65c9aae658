"""
BoxIT Backend — Label and ItemLabel Models
===========================================

Labels are a per-user vocabulary: two users may both own a "Fragile"
label and those are distinct rows. ItemLabel links an item to a label at
most once.
"""

import uuid
from typing import List

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxit.database import Base
from boxit.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Label(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "labels"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    user: Mapped["User"] = relationship(back_populates="labels")
    item_labels: Mapped[List["ItemLabel"]] = relationship(
        back_populates="label",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_labels_user_name"),
    )

    def __repr__(self) -> str:
        return f"<Label(id={self.id}, name='{self.name}')>"


class ItemLabel(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "item_labels"

    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("labels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item: Mapped["Item"] = relationship(back_populates="item_labels")
    label: Mapped["Label"] = relationship(back_populates="item_labels")

    __table_args__ = (
        UniqueConstraint("item_id", "label_id", name="uq_item_labels_item_label"),
    )
