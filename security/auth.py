from __future__ import annotations

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from core.errors import auth_invalid_token
from security.encrypting_jwt import decode_jwt_token
from security.principal import AuthPrincipal


token_auth_scheme = HTTPBearer(auto_error=True)


def _resolve_principal(credentials: HTTPAuthorizationCredentials) -> AuthPrincipal:
    try:
        payload = decode_jwt_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise auth_invalid_token(details={"reason": "expired"})
    except (jwt.InvalidTokenError, ValidationError):
        raise auth_invalid_token()

    return AuthPrincipal(
        user_id=payload.user_id,
        jwt_token=credentials.credentials,
        token_issued_at=int(payload.iat.timestamp()),
    )


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(token_auth_scheme),
) -> AuthPrincipal:
    return _resolve_principal(credentials)
