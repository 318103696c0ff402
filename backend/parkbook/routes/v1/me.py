"""Signed-in user's own bookings and profile."""

from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import require_user
from ...api.dependencies.services import get_booking_query_service, get_profile_service
from ...principal import Principal
from ...schemas.booking import MyBookingItem
from ...schemas.profile import ProfileResponse, ProfileUpdate
from ...services.booking_query_service import BookingQueryService
from ...services.profile_service import ProfileService

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/bookings", response_model=List[MyBookingItem])
def list_my_bookings(
    principal: Principal = Depends(require_user),
    service: BookingQueryService = Depends(get_booking_query_service),
) -> List[MyBookingItem]:
    return service.list_my_bookings(principal)


@router.get("/profile", response_model=ProfileResponse)
def get_my_profile(
    principal: Principal = Depends(require_user),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return service.get_own_profile(principal)


@router.put("/profile", response_model=ProfileResponse)
def update_my_profile(
    payload: ProfileUpdate,
    principal: Principal = Depends(require_user),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return service.update_own_profile(principal, payload)
