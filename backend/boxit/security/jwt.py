"""
Bearer access tokens.

Tokens are HS256 JWTs carrying the user id in `sub`, issued by "boxit"
with a `token_type` claim so other token kinds can never be replayed as a
session.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple
from uuid import UUID

import jwt

from boxit.config import Settings

ISSUER = "boxit"
ACCESS_TOKEN_TYPE = "access"


def _build_payload(user_id: str, token_type: str, expires_delta: timedelta) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "sub": user_id,
        "iss": ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "token_type": token_type,
    }


def create_access_token(user_id: UUID, settings: Settings) -> Tuple[str, int]:
    """Return (token, expires_in_seconds)."""
    expires_delta = timedelta(minutes=settings.access_token_ttl_minutes)
    payload = _build_payload(str(user_id), ACCESS_TOKEN_TYPE, expires_delta)
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, int(expires_delta.total_seconds())


def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Decode and verify a token. Raises jwt.PyJWTError on any problem."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=ISSUER,
        options={"require": ["sub", "exp", "iat"]},
    )
