"""
Stripe webhook endpoint.

Receives checkout notifications and hands the raw body to the reconciliation
service. The body must not be parsed before signature verification, so the
route reads ``request.body()`` rather than declaring a JSON model.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from ...api.dependencies.services import get_payment_webhook_service
from ...schemas.payment import WebhookResponse
from ...services.payment_webhook_service import PaymentWebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request,
    service: PaymentWebhookService = Depends(get_payment_webhook_service),
) -> WebhookResponse:
    """
    Reconcile a Stripe event.

    Returns 200 for processed, duplicate and ignored events, 400 for bad
    signatures or malformed metadata, and 5xx when the booking could not be
    stored so that Stripe redelivers.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    result = await asyncio.to_thread(
        service.handle_notification,
        payload,
        signature,
        dict(request.headers),
    )
    logger.info(
        "Stripe webhook %s handled: %s (booking=%s)",
        result.event_type,
        result.status,
        result.booking_id,
    )
    return WebhookResponse(
        status=result.status,
        event_type=result.event_type,
        booking_id=result.booking_id,
        message=result.message,
    )
