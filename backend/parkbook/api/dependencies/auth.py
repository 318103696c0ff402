# backend/parkbook/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

Routes receive an explicit principal instead of reading ambient session
state. Missing or invalid tokens resolve to the anonymous principal; routes
that need a signed-in user depend on ``require_user``.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ...auth import InvalidTokenError, decode_access_token
from ...core.enums import RoleName
from ...core.exceptions import AuthenticationRequired, ForbiddenException
from ...database import get_db
from ...principal import ANONYMOUS, Principal, UserPrincipal
from ...repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    if credentials is None or not credentials.credentials:
        return ANONYMOUS
    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        logger.info("Rejected access token: %s", exc)
        return ANONYMOUS

    user_id = str(claims["sub"])
    role = RepositoryFactory.create_profile_repository(db).get_role(user_id)
    return UserPrincipal(
        user_id=user_id,
        role=role or RoleName.USER.value,
        email=claims.get("email"),
    )


def require_user(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_authenticated:
        raise AuthenticationRequired()
    return principal


def require_admin(principal: Principal = Depends(require_user)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenException("Administrator access required", code="FORBIDDEN")
    return principal
