# backend/parkbook/services/checkout_service.py
"""
Checkout initiation.

Validates that a seat is plausibly available and that the caller has not
already booked, then opens a Stripe hosted checkout. Nothing is written
locally: the seat is granted only when the payment webhook arrives, so these
checks are advisory and the reconciliation workflow remains authoritative.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    AlreadyBooked,
    AuthenticationRequired,
    DomainException,
    NotAcceptingBookings,
    PaymentProviderError,
    PaymentProviderNotConfigured,
    ProgramFull,
    ProgramNotFound,
    ValidationException,
)
from ..integrations.stripe_checkout import CheckoutSession, StripeCheckoutError
from ..models.program import Program
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from .base import BaseService


class CheckoutGateway(Protocol):
    def create_checkout_session(
        self,
        *,
        currency: str,
        unit_amount: int,
        product_name: str,
        product_description: Optional[str],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer_email: Optional[str] = None,
    ) -> CheckoutSession: ...


@dataclass(frozen=True)
class CheckoutStart:
    url: str
    session_id: str


def describe_program(program: Program) -> str:
    """Line-item description shown on the hosted checkout page."""
    park_name = program.park.name if program.park is not None else ""
    start = program.start_time.strftime("%H:%M")
    end = program.end_time.strftime("%H:%M")
    return f"{park_name} - {program.date.isoformat()} {start}〜{end}"


class CheckoutService(BaseService):
    """Opens hosted checkout sessions for open programs."""

    def __init__(self, db: Session, checkout_client: Optional[CheckoutGateway] = None):
        super().__init__(db)
        self.checkout_client = checkout_client
        self.program_repository = RepositoryFactory.create_program_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def _deny(self, exc: DomainException, reason: str) -> DomainException:
        prometheus_metrics.record_checkout_denial(reason)
        self.logger.info("Checkout refused: %s (%s)", reason, exc.details or exc.message)
        return exc

    @BaseService.measure_operation("start_checkout")
    def start_checkout(
        self,
        principal: Principal,
        program_id: Optional[str],
        *,
        origin: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> CheckoutStart:
        """
        Validate availability and open a hosted checkout for ``program_id``.

        Checks run in a fixed order: authentication, existence, open status,
        remaining capacity, existing confirmed booking.

        Raises:
            AuthenticationRequired: caller has no session
            ValidationException: no program id given
            ProgramNotFound / NotAcceptingBookings / ProgramFull / AlreadyBooked
            PaymentProviderNotConfigured / PaymentProviderError
        """
        if not principal.is_authenticated:
            raise self._deny(AuthenticationRequired(), "unauthenticated")
        if not program_id:
            raise self._deny(
                ValidationException("eventId is required", code="VALIDATION_ERROR"),
                "missing_program_id",
            )

        program = self.program_repository.get_program(program_id)
        if program is None:
            raise self._deny(ProgramNotFound(program_id), "not_found")
        if not program.is_open:
            raise self._deny(NotAcceptingBookings(program_id, program.status), "not_open")
        if program.is_full:
            raise self._deny(ProgramFull(program_id, program.capacity), "full")

        existing = self.booking_repository.find_confirmed(
            principal, user_id=principal.id, program_id=program_id
        )
        if existing is not None:
            raise self._deny(AlreadyBooked(program_id), "already_booked")

        if self.checkout_client is None:
            raise PaymentProviderNotConfigured()

        base = (origin or settings.frontend_url).rstrip("/")
        try:
            session = self.checkout_client.create_checkout_session(
                currency=settings.stripe_currency,
                unit_amount=program.price,
                product_name=program.title,
                product_description=describe_program(program),
                success_url=(
                    f"{base}/programs/{program.id}/complete?session_id={{CHECKOUT_SESSION_ID}}"
                ),
                cancel_url=f"{base}/programs/{program.id}/checkout",
                metadata={
                    "eventId": program.id,
                    "userId": principal.id,
                    "price": str(program.price),
                },
                customer_email=customer_email,
            )
        except StripeCheckoutError as exc:
            raise PaymentProviderError(
                "Failed to create checkout session", details={"provider_code": exc.code}
            ) from exc

        self.logger.info(
            "Checkout session %s opened for program %s by %s",
            session.id,
            program.id,
            principal.id,
        )
        return CheckoutStart(url=session.url, session_id=session.id)
