"""
BoxIT Backend — Authentication Schemas
=======================================

Emails are trimmed and lower-cased at the boundary so every lookup
and unique check compares the same form.
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    email = value.strip().lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValueError("Enter a valid email address")
    return email


class EmailPayload(BaseModel):
    email: str = Field(max_length=320, description="Account email address")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class SignupRequest(EmailPayload):
    password: str = Field(min_length=1, max_length=256, description="Plain-text password")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")

    @field_validator("name")
    @classmethod
    def blank_name_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class LoginRequest(EmailPayload):
    password: str = Field(min_length=1, max_length=256)


class CheckUserRequest(EmailPayload):
    pass


class ForgotPasswordRequest(EmailPayload):
    pass


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1, max_length=128, description="Token from the reset email")
    password: str = Field(min_length=1, max_length=256, description="New password")


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SignupResponse(BaseModel):
    message: str = Field(
        default="Account created. Please check your email to verify your account.",
    )
    user: UserResponse


class TokenResponse(BaseModel):
    """Bearer token returned by a successful login."""
    access_token: str = Field(description="JWT to send as 'Authorization: Bearer <token>'")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse


class CheckUserResponse(BaseModel):
    exists: bool = Field(description="Whether an account uses this email")
    verified: bool = Field(description="Whether that account has verified its email")
