"""Checkout endpoint: opens a hosted Stripe checkout for a program."""

from fastapi import APIRouter, Depends, Request

from ...api.dependencies.auth import get_principal
from ...api.dependencies.services import get_checkout_service
from ...principal import Principal
from ...schemas.payment import CheckoutRequest, CheckoutResponse
from ...services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """
    Start checkout for ``eventId``.

    Anonymous callers get 401 (checked before anything else), unknown programs
    404, and closed, full or already-booked programs 409.
    """
    start = service.start_checkout(
        principal,
        payload.event_id,
        origin=request.headers.get("origin"),
        customer_email=getattr(principal, "email", None),
    )
    return CheckoutResponse(url=start.url, session_id=start.session_id)
