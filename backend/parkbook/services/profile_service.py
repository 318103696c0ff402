# backend/parkbook/services/profile_service.py
"""Own-profile read and upsert."""

from sqlalchemy.orm import Session

from ..core.exceptions import AuthenticationRequired, NotFoundException
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from ..schemas.profile import ProfileResponse, ProfileUpdate
from .base import BaseService


class ProfileService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)

    @BaseService.measure_operation("get_own_profile")
    def get_own_profile(self, principal: Principal) -> ProfileResponse:
        if not principal.is_authenticated:
            raise AuthenticationRequired()
        profile = self.profile_repository.get_profile(principal, principal.id)
        if profile is None:
            raise NotFoundException("Profile not found", code="PROFILE_NOT_FOUND")
        return ProfileResponse.model_validate(profile)

    @BaseService.measure_operation("update_own_profile")
    def update_own_profile(self, principal: Principal, payload: ProfileUpdate) -> ProfileResponse:
        if not principal.is_authenticated:
            raise AuthenticationRequired()
        fields = payload.model_dump(exclude_unset=True, mode="json")
        with self.transaction():
            profile = self.profile_repository.upsert_profile(principal, principal.id, **fields)
        self.db.refresh(profile)
        return ProfileResponse.model_validate(profile)
