"""Service providers for FastAPI routes; tests override these."""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...database import get_db
from ...integrations.stripe_checkout import StripeCheckoutClient
from ...services.booking_query_service import BookingQueryService
from ...services.checkout_service import CheckoutGateway, CheckoutService
from ...services.payment_webhook_service import PaymentWebhookService
from ...services.profile_service import ProfileService
from ...services.program_admin_service import ProgramAdminService
from ...services.program_service import ProgramService
from ...services.webhook_ledger_service import WebhookLedgerService

logger = logging.getLogger(__name__)


def get_checkout_client() -> Optional[CheckoutGateway]:
    if not settings.stripe_secret_key.get_secret_value():
        logger.warning("Stripe secret key not configured - checkout is unavailable")
        return None
    return StripeCheckoutClient(api_key=settings.stripe_secret_key)


def get_checkout_service(
    db: Session = Depends(get_db),
    checkout_client: Optional[CheckoutGateway] = Depends(get_checkout_client),
) -> CheckoutService:
    return CheckoutService(db, checkout_client=checkout_client)


def get_payment_webhook_service(db: Session = Depends(get_db)) -> PaymentWebhookService:
    return PaymentWebhookService(db)


def get_program_service(db: Session = Depends(get_db)) -> ProgramService:
    return ProgramService(db)


def get_program_admin_service(db: Session = Depends(get_db)) -> ProgramAdminService:
    return ProgramAdminService(db)


def get_booking_query_service(db: Session = Depends(get_db)) -> BookingQueryService:
    return BookingQueryService(db)


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_webhook_ledger_service(db: Session = Depends(get_db)) -> WebhookLedgerService:
    return WebhookLedgerService(db)
