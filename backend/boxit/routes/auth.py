"""
BoxIT Backend — Authentication Routes
======================================

What:  Account lifecycle under /api/auth.

Route Inventory:
    POST /api/auth/signup           create unverified account, email link
    GET  /api/auth/verify?token=    verify email, redirect to sign-in page
    POST /api/auth/login            exchange credentials for a bearer token
    POST /api/auth/check-user       {exists, verified} for an email
    POST /api/auth/forgot-password  email a reset link (same reply for all)
    POST /api/auth/reset-password   set a new password with a reset token
    GET  /api/auth/me               current user

Emails go out as BackgroundTasks after the response is sent; a delivery
failure is logged and does not change the response.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.config import Settings
from boxit.database import get_db_session
from boxit.dependencies import get_current_user_id, get_email_sender, get_settings
from boxit.exceptions import UnauthorizedError
from boxit.schemas.auth import (
    CheckUserRequest,
    CheckUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserResponse,
)
from boxit.schemas.common import ErrorResponse, MessageResponse
from boxit.services.auth_service import VerificationOutcome, auth_service
from boxit.services.email_service import EmailSender, dispatch_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

FORGOT_PASSWORD_REPLY = "If an account with that email exists, we sent a password reset link."


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={
        400: {"description": "Password too short", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    sender: EmailSender = Depends(get_email_sender),
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    user, message = await auth_service.signup(db, settings, payload)
    background_tasks.add_task(dispatch_email, sender, message)
    return SignupResponse(user=user)


@router.get(
    "/verify",
    response_class=RedirectResponse,
    status_code=307,
    summary="Verify an email address",
    description="Follows the link from the verification email and redirects to the sign-in page.",
)
async def verify_email(
    token: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    outcome = await auth_service.verify_email(db, token)
    signin = f"{settings.public_base_url}/auth/signin"
    if outcome is VerificationOutcome.INVALID_TOKEN:
        return RedirectResponse(f"{signin}?error={outcome.value}", status_code=307)
    return RedirectResponse(f"{signin}?message={outcome.value}", status_code=307)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Bad credentials or unverified email", "model": ErrorResponse}},
    summary="Sign in",
)
async def login(
    payload: LoginRequest,
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token, expires_in, user = await auth_service.login(db, settings, payload.email, payload.password)
    return TokenResponse(access_token=token, expires_in=expires_in, user=user)


@router.post("/check-user", response_model=CheckUserResponse, summary="Check whether an email is registered")
async def check_user(
    payload: CheckUserRequest,
    db: AsyncSession = Depends(get_db_session),
) -> CheckUserResponse:
    return await auth_service.check_user(db, payload.email)


@router.post("/forgot-password", response_model=MessageResponse, summary="Request a password reset email")
async def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    sender: EmailSender = Depends(get_email_sender),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    message = await auth_service.forgot_password(db, settings, payload.email)
    if message is not None:
        background_tasks.add_task(dispatch_email, sender, message)
    return MessageResponse(message=FORGOT_PASSWORD_REPLY)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Choose a new password",
)
async def reset_password(
    payload: ResetPasswordRequest,
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.reset_password(db, settings, payload.token, payload.password)
    return MessageResponse(message="Password updated. You can now sign in.")


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.get_user(db, user_id)
    if user is None:
        raise UnauthorizedError()
    return UserResponse.model_validate(user)
