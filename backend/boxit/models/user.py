"""
BoxIT Backend — User Model
===========================

What:  Identity and credentials of an account.

Lifecycle:
    1. Created at signup, unverified, with a single-use verification token
    2. Verified once: email_verified=True, token cleared
    3. Password reset: a single-use token valid for one hour, cleared on use
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from boxit.database import Base
from boxit.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    # Stored lower-cased so lookups are case-insensitive
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)

    # passlib hash string (argon2 by default)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Email Verification ────────────────────────────────────────────────
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_token: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True, nullable=True
    )

    # ── Password Reset ────────────────────────────────────────────────────
    password_reset_token: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True, nullable=True
    )
    password_reset_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    storage_rooms: Mapped[List["StorageRoom"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
    labels: Mapped[List["Label"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', verified={self.email_verified})>"
