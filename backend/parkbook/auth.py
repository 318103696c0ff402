# backend/parkbook/auth.py
"""
Verification of identity-provider access tokens.

Supabase Auth issues HS256 JWTs signed with the project's JWT secret; ``sub``
is the user id and ``aud`` is ``authenticated`` for signed-in users.
"""

import logging
from typing import Any, Dict, cast

import jwt
from jwt import PyJWTError

from .core.config import settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be verified."""


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a Supabase access token."""
    secret = settings.supabase_jwt_secret.get_secret_value()
    if not secret:
        raise InvalidTokenError("JWT secret is not configured")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.supabase_jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    return cast(Dict[str, Any], payload)
