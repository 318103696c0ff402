# backend/parkbook/repositories/profile_repository.py
"""Profile repository; users read and write their own row only."""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import AccessDeniedException
from ..models.profile import Profile
from ..principal import Principal
from .base_repository import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    def __init__(self, db: Session):
        super().__init__(db, Profile)

    def _check_owner(self, principal: Principal, user_id: str, action: str) -> None:
        self._require_authenticated(principal, action)
        if principal.id != user_id and not self._sees_all_rows(principal):
            raise AccessDeniedException(action, principal.id)

    def get_profile(self, principal: Principal, user_id: str) -> Optional[Profile]:
        self._check_owner(principal, user_id, "read profiles")
        return self.get_by_id(user_id)

    def get_role(self, user_id: str) -> Optional[str]:
        """Role lookup used while authenticating, before a principal exists."""
        query = self.db.query(Profile.role).filter(Profile.id == user_id)
        return self._execute_scalar(query)

    def upsert_profile(self, principal: Principal, user_id: str, **fields: Any) -> Profile:
        self._check_owner(principal, user_id, "write profiles")
        fields.pop("role", None)
        profile = self.get_by_id(user_id)
        if profile is None:
            return self.create(id=user_id, **fields)
        return self.update(profile, **fields)
