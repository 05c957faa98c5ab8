from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from core.settings import get_settings

# Token lifetime (in minutes)
ACCESS_TOKEN_EXPIRE_MINUTES = 60
ALGORITHM = "HS256"


class JWTPayload(BaseModel):
    user_id: str
    email: str | None = None
    exp: datetime
    iat: datetime


def _secret_key() -> str:
    return get_settings().secret_key


def create_jwt_token(
    user_id: str,
    email: str | None = None,
    *,
    expires_in_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = JWTPayload(
        user_id=user_id,
        email=email,
        exp=issued_at + timedelta(minutes=expires_in_minutes),
        iat=issued_at,
    ).model_dump()

    return jwt.encode(
        payload=payload,
        key=_secret_key(),
        algorithm=ALGORITHM,
        headers={"typ": "JWT"},
    )


def decode_jwt_token(token: str) -> JWTPayload:
    """Decode and verify ``token``.

    Raises ``jwt.InvalidTokenError`` (or a subclass such as
    ``jwt.ExpiredSignatureError``) when the signature or claims are bad.
    """
    claims = jwt.decode(
        token,
        key=_secret_key(),
        algorithms=[ALGORITHM],
        options={"require": ["exp", "iat", "user_id"]},
    )
    return JWTPayload.model_validate(claims)
