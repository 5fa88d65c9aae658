"""
BoxIT Backend — Request Dependencies
=====================================

What:  FastAPI dependencies shared by the routers.
How:   Collaborators (settings, image storage, email sender, QR renderer)
       are built once in create_app() and stored on app.state; these
       getters hand them to route handlers. `get_current_user_id` is the
       session gate for every non-public route.
"""

import logging
import uuid
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.database import get_db_session
from boxit.exceptions import UnauthorizedError
from boxit.security.jwt import ACCESS_TOKEN_TYPE, decode_token
from boxit.services.auth_service import auth_service
from boxit.services.email_service import EmailSender
from boxit.services.qr_service import QRRenderer
from boxit.services.storage_base import ImageStorage

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> ImageStorage:
    return request.app.state.storage


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_qr_renderer(request: Request) -> QRRenderer:
    return request.app.state.qr_renderer


async def get_current_user_id(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> uuid.UUID:
    """
    Resolve the bearer token to the id of an existing user.

    Raises:
        UnauthorizedError: no token, bad signature, expired, wrong token
                           type, or the user no longer exists
    """
    if not token:
        raise UnauthorizedError()
    try:
        payload = decode_token(token, settings)
    except jwt.PyJWTError as e:
        logger.info("Rejected session token: %s", type(e).__name__)
        raise UnauthorizedError("Invalid or expired session")

    if payload.get("token_type") != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("Invalid or expired session")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise UnauthorizedError("Invalid or expired session")

    if await auth_service.get_user(db, user_id) is None:
        raise UnauthorizedError("Invalid or expired session")
    return user_id
