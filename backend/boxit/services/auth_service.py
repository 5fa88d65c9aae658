"""
BoxIT Backend — Account Service
================================

What:  Signup, email verification, login, user lookup and password reset.
Who:   Called by routes/auth.py, which schedules the emails returned here
       as background tasks.

Token rules:
    verification_token:   URL-safe random string, single use, cleared on
                          verification
    password_reset_token: URL-safe random string, valid for
                          `password_reset_ttl_minutes`, cleared on use
"""

import logging
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.exceptions import ConflictError, InvalidInputError, UnauthorizedError
from boxit.models import User
from boxit.schemas.auth import CheckUserResponse, SignupRequest, UserResponse
from boxit.security.jwt import create_access_token
from boxit.security.passwords import hash_password, verify_password
from boxit.services.email_service import EmailMessage, password_reset_email, verification_email

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_token(length: int) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    ALREADY_VERIFIED = "already-verified"
    INVALID_TOKEN = "invalid-token"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    def _check_password_strength(self, password: str, settings: Settings) -> None:
        if len(password) < settings.min_password_length:
            raise InvalidInputError(
                f"Password must be at least {settings.min_password_length} characters",
                field="password",
            )

    async def signup(
        self, db: AsyncSession, settings: Settings, payload: SignupRequest
    ) -> Tuple[UserResponse, EmailMessage]:
        """
        Create an unverified account.

        Returns the new user and the verification email to send.

        Raises:
            InvalidInputError: password too short
            ConflictError:     email already registered
        """
        self._check_password_strength(payload.password, settings)
        if await self._find_by_email(db, payload.email) is not None:
            raise ConflictError("An account with this email already exists")

        user = User(
            email=payload.email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            email_verified=False,
            verification_token=generate_token(settings.verification_token_length),
        )
        db.add(user)
        await db.flush()
        logger.info("User signed up: %s", user.id)

        message = verification_email(settings, user.email, user.name, user.verification_token)
        return UserResponse.model_validate(user), message

    async def verify_email(self, db: AsyncSession, token: Optional[str]) -> VerificationOutcome:
        if not token:
            return VerificationOutcome.INVALID_TOKEN

        result = await db.execute(select(User).where(User.verification_token == token))
        user = result.scalar_one_or_none()
        if user is None:
            return VerificationOutcome.INVALID_TOKEN

        if user.email_verified:
            user.verification_token = None
            await db.flush()
            return VerificationOutcome.ALREADY_VERIFIED

        user.email_verified = True
        user.verification_token = None
        await db.flush()
        logger.info("Email verified for user %s", user.id)
        return VerificationOutcome.VERIFIED

    async def login(
        self, db: AsyncSession, settings: Settings, email: str, password: str
    ) -> Tuple[str, int, UserResponse]:
        """
        Returns (access_token, expires_in, user).

        Raises:
            UnauthorizedError: unknown email, wrong password, or email not
                               yet verified
        """
        user = await self._find_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.email_verified:
            raise UnauthorizedError("Please verify your email before signing in")

        token, expires_in = create_access_token(user.id, settings)
        logger.info("User logged in: %s", user.id)
        return token, expires_in, UserResponse.model_validate(user)

    async def check_user(self, db: AsyncSession, email: str) -> CheckUserResponse:
        user = await self._find_by_email(db, email)
        if user is None:
            return CheckUserResponse(exists=False, verified=False)
        return CheckUserResponse(exists=True, verified=user.email_verified)

    async def forgot_password(
        self, db: AsyncSession, settings: Settings, email: str
    ) -> Optional[EmailMessage]:
        """
        Issue a reset token for an existing account.

        Returns the email to send, or None when no account matches. Callers
        answer both cases identically.
        """
        user = await self._find_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        user.password_reset_token = generate_token(settings.verification_token_length)
        user.password_reset_expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.password_reset_ttl_minutes
        )
        await db.flush()
        logger.info("Password reset token issued for user %s", user.id)
        return password_reset_email(settings, user.email, user.name, user.password_reset_token)

    async def reset_password(
        self, db: AsyncSession, settings: Settings, token: str, password: str
    ) -> None:
        """
        Raises:
            InvalidInputError: unknown, used or expired token, or weak password
        """
        result = await db.execute(select(User).where(User.password_reset_token == token))
        user = result.scalar_one_or_none()
        expires = user.password_reset_expires if user is not None else None
        if user is None or expires is None or _as_utc(expires) < datetime.now(timezone.utc):
            raise InvalidInputError("Invalid or expired reset token", field="token")

        self._check_password_strength(password, settings)
        user.password_hash = hash_password(password)
        user.password_reset_token = None
        user.password_reset_expires = None
        await db.flush()
        logger.info("Password reset for user %s", user.id)

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()


auth_service = AuthService()
