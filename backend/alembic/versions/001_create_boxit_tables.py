"""Create BoxIT tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  users, storage_rooms, boxes, items, labels and item_labels.
       Foreign keys cascade on delete down the ownership chain
       User → StorageRoom → Box → Item, and from items and labels to
       item_labels.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("verification_token", sa.String(128), nullable=True, unique=True),
        sa.Column("password_reset_token", sa.String(128), nullable=True, unique=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "storage_rooms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_storage_rooms_user_updated", "storage_rooms", ["user_id", "updated_at"])

    op.create_table(
        "boxes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "storage_room_id",
            sa.Uuid(),
            sa.ForeignKey("storage_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("qr_code", sa.String(64), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_boxes_storage_room_id", "boxes", ["storage_room_id"])
    op.create_index("ix_boxes_qr_code", "boxes", ["qr_code"], unique=True)

    op.create_table(
        "items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("box_id", sa.Uuid(), sa.ForeignKey("boxes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_path", sa.String(1024), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_items_box_id", "items", ["box_id"])

    op.create_table(
        "labels",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_labels_user_name"),
    )
    op.create_index("ix_labels_user_id", "labels", ["user_id"])

    op.create_table(
        "item_labels",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label_id", sa.Uuid(), sa.ForeignKey("labels.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("item_id", "label_id", name="uq_item_labels_item_label"),
    )
    op.create_index("ix_item_labels_item_id", "item_labels", ["item_id"])
    op.create_index("ix_item_labels_label_id", "item_labels", ["label_id"])


def downgrade() -> None:
    op.drop_table("item_labels")
    op.drop_table("labels")
    op.drop_table("items")
    op.drop_table("boxes")
    op.drop_table("storage_rooms")
    op.drop_table("users")
