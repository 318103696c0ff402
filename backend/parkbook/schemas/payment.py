"""Checkout and webhook schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ._strict_base import OrmModel, StrictModel, StrictRequestModel


class CheckoutRequest(StrictRequestModel):
    event_id: Optional[str] = Field(None, alias="eventId", description="Program to book")


class CheckoutResponse(StrictModel):
    url: str = Field(..., description="Hosted checkout URL to redirect the user to")
    session_id: str


class WebhookResponse(StrictModel):
    """Response for webhook processing."""

    received: bool = True
    status: str = Field(..., description="Processing status (processed, duplicate, ignored)")
    event_type: str = Field(..., description="Stripe event type")
    booking_id: Optional[str] = None
    message: Optional[str] = Field(None, description="Additional information")


class WebhookEventItem(OrmModel):
    id: str
    source: str
    event_type: str
    event_id: Optional[str] = None
    status: str
    processing_error: Optional[str] = None
    processing_duration_ms: Optional[int] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    retry_count: int = 0
    received_at: datetime
    processed_at: Optional[datetime] = None
