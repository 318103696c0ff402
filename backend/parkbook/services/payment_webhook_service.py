# backend/parkbook/services/payment_webhook_service.py
"""
Payment notification handling: turns a completed Stripe checkout into a seat.

Flow for one delivery:

1. Verify the ``Stripe-Signature`` header over the raw body.
2. Record the event in the webhook ledger keyed by the Stripe event id and
   claim it; redeliveries of handled events are acknowledged untouched.
3. Ignore every event type other than ``checkout.session.completed``.
4. Require ``eventId`` and ``userId`` in the session metadata, and the program
   named by ``eventId`` to exist; otherwise the entry is rejected for good.
5. In a single transaction: skip if a confirmed booking already exists,
   insert the booking, then the payment record and the capacity increment,
   each inside its own savepoint so a failure there keeps the booking.

Any failure after the claim marks the entry ``failed`` so a redelivery can
retry it. A claim abandoned by a crashed worker expires after
``webhook_claim_timeout_seconds``.

The booking insert is the commit point. Once it succeeds the payment has
been captured and the seat is granted even if bookkeeping after it fails.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import time
from typing import Any, Dict, Optional

from pydantic import SecretStr
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TERMINAL_WEBHOOK_STATUSES, WebhookEventStatus
from ..core.exceptions import (
    InvalidSignature,
    MalformedEvent,
    PersistenceFailure,
    RepositoryException,
    ServiceException,
    WebhookInProgress,
)
from ..integrations.stripe_checkout import (
    WebhookPayloadError,
    WebhookVerificationError,
    construct_event,
    parse_event,
)
from ..models.booking import Booking
from ..models.webhook_event import WebhookEvent
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import WEBHOOK_PRINCIPAL, Principal
from ..repositories.base_repository import is_unique_violation
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .webhook_ledger_service import WebhookLedgerService

LEDGER_SOURCE = "stripe"
CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"


@dataclass
class ReconciliationResult:
    """Outcome reported back to Stripe (all of these are acknowledged with 2xx)."""

    status: str  # processed | duplicate | ignored
    event_type: str
    booking_id: Optional[str] = None
    message: Optional[str] = None
    payment_recorded: bool = False
    capacity_incremented: bool = False
    oversubscribed: bool = False


def _stripe_payment_id(session_obj: Dict[str, Any]) -> Optional[str]:
    intent = session_obj.get("payment_intent")
    if isinstance(intent, dict):
        intent = intent.get("id")
    return intent or session_obj.get("id")


class PaymentWebhookService(BaseService):
    """Reconciles Stripe checkout notifications into bookings."""

    def __init__(
        self,
        db: Session,
        *,
        webhook_secret: str | SecretStr | None = None,
        principal: Principal = WEBHOOK_PRINCIPAL,
        ledger: Optional[WebhookLedgerService] = None,
    ):
        super().__init__(db)
        secret = settings.stripe_webhook_secret if webhook_secret is None else webhook_secret
        self.webhook_secret = (
            secret.get_secret_value() if isinstance(secret, SecretStr) else secret
        )
        self.principal = principal
        self.ledger = ledger or WebhookLedgerService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.program_repository = RepositoryFactory.create_program_repository(db)

    # Authenticity

    def authenticate(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Return the parsed event if ``payload`` is authentic.

        Without a configured secret verification is skipped (local development
        only); production refuses to process unsigned notifications.
        """
        if not self.webhook_secret:
            if settings.is_production:
                self.logger.error("Stripe webhook secret is not configured; refusing notification")
                raise ServiceException(
                    "Webhook signing secret is not configured", code="WEBHOOK_SECRET_MISSING"
                )
            self.logger.warning(
                "STRIPE_WEBHOOK_SECRET is not set; skipping webhook signature verification"
            )
            try:
                return parse_event(payload)
            except WebhookPayloadError as exc:
                raise MalformedEvent(str(exc)) from exc

        try:
            return construct_event(
                payload,
                signature,
                self.webhook_secret,
                tolerance=settings.stripe_webhook_tolerance_seconds,
            )
        except WebhookVerificationError as exc:
            self.logger.warning("Stripe webhook signature verification failed: %s", exc)
            prometheus_metrics.record_webhook_outcome("invalid_signature")
            raise InvalidSignature() from exc
        except WebhookPayloadError as exc:
            raise MalformedEvent(str(exc)) from exc

    # Entry point

    @BaseService.measure_operation("handle_notification")
    def handle_notification(
        self,
        payload: bytes,
        signature: Optional[str],
        headers: Optional[Dict[str, Any]] = None,
    ) -> ReconciliationResult:
        """
        Process one webhook delivery.

        Raises:
            InvalidSignature: body does not match the signature (nothing written)
            MalformedEvent: checkout session lacks eventId/userId
            WebhookInProgress: another worker holds the same event
            PersistenceFailure: booking could not be written; Stripe should retry
        """
        event = self.authenticate(payload, signature)
        event_type = str(event.get("type") or "unknown")
        raw_event_id = event.get("id")
        event_id = raw_event_id if isinstance(raw_event_id, str) and raw_event_id else None
        started = time.monotonic()

        with self.transaction():
            entry = self.ledger.log_received(
                source=LEDGER_SOURCE,
                event_type=event_type,
                event_id=event_id,
                payload=event,
                headers=headers,
            )
            if entry.status in TERMINAL_WEBHOOK_STATUSES:
                self.logger.info(
                    "Stripe event %s already handled (status=%s, retry_count=%s)",
                    event_id,
                    entry.status,
                    entry.retry_count,
                )
                prometheus_metrics.record_webhook_outcome("duplicate")
                return ReconciliationResult(
                    status=WebhookEventStatus.DUPLICATE.value,
                    event_type=event_type,
                    booking_id=entry.related_entity_id,
                    message="Event already processed",
                )
            claimed = self.ledger.mark_processing(entry)
        if not claimed:
            raise WebhookInProgress(event_id or entry.id)

        # From here on the claim must be released whatever happens.
        try:
            result = self._process_claimed(entry, event, event_type, started)
        except MalformedEvent:
            raise
        except PersistenceFailure as exc:
            self._record_failure(entry, exc, started)
            raise
        except Exception as exc:
            self.logger.exception("Reconciliation of Stripe event %s failed", event_id)
            failure = PersistenceFailure("Failed to commit booking", details={"error": str(exc)})
            self._record_failure(entry, failure, started)
            raise failure from exc

        prometheus_metrics.record_webhook_outcome(result.status)
        return result

    def _process_claimed(
        self, entry: WebhookEvent, event: Dict[str, Any], event_type: str, started: float
    ) -> ReconciliationResult:
        if event_type != CHECKOUT_SESSION_COMPLETED:
            return self._acknowledge_ignored(entry, event, event_type, started)

        session_obj = (event.get("data") or {}).get("object") or {}
        metadata = session_obj.get("metadata") or {}
        program_id = metadata.get("eventId")
        user_id = metadata.get("userId")
        if not program_id or not user_id:
            self._reject(
                entry,
                session_obj,
                started,
                reason="missing eventId or userId metadata",
                message="Checkout session metadata must include eventId and userId",
            )
        if self.program_repository.get_program(program_id) is None:
            self._reject(
                entry,
                session_obj,
                started,
                reason=f"unknown program {program_id}",
                message="Checkout session metadata names an unknown program",
            )

        with self.transaction():
            result = self.reconcile(session_obj, program_id=program_id, user_id=user_id)
            self.ledger.mark_processed(
                entry,
                status=result.status,
                related_entity_type="booking",
                related_entity_id=result.booking_id,
                duration_ms=self.ledger.elapsed_ms(started),
            )
        return result

    # Reconciliation

    def reconcile(
        self, session_obj: Dict[str, Any], *, program_id: str, user_id: str
    ) -> ReconciliationResult:
        """
        Apply a completed checkout inside the caller's transaction.

        Returns ``duplicate`` when the pair is already confirmed (sequentially
        or through a concurrent delivery that won the unique index).
        """
        stripe_payment_id = _stripe_payment_id(session_obj)

        existing = self.booking_repository.find_confirmed(
            self.principal, user_id=user_id, program_id=program_id
        )
        if existing is not None:
            return self._duplicate(existing, stripe_payment_id)

        try:
            with self.db.begin_nested():
                booking = self.booking_repository.create_confirmed(
                    self.principal, user_id=user_id, program_id=program_id
                )
        except RepositoryException as exc:
            if is_unique_violation(exc):
                self.logger.warning(
                    "Concurrent delivery already confirmed user=%s program=%s",
                    user_id,
                    program_id,
                )
                winner = self.booking_repository.find_confirmed(
                    self.principal, user_id=user_id, program_id=program_id
                )
                if winner is not None:
                    return self._duplicate(winner, stripe_payment_id)
                return ReconciliationResult(
                    status=WebhookEventStatus.DUPLICATE.value,
                    event_type=CHECKOUT_SESSION_COMPLETED,
                    message="Booking already confirmed",
                )
            self.logger.error(
                "Booking insert failed for user=%s program=%s: %s", user_id, program_id, exc
            )
            raise PersistenceFailure(
                "Failed to create booking",
                details={"program_id": program_id, "user_id": user_id},
            ) from exc

        self.logger.info(
            "Booking %s confirmed for user=%s program=%s", booking.id, user_id, program_id
        )
        result = ReconciliationResult(
            status=WebhookEventStatus.PROCESSED.value,
            event_type=CHECKOUT_SESSION_COMPLETED,
            booking_id=booking.id,
        )
        result.payment_recorded = self._record_payment(booking, session_obj, stripe_payment_id)
        self._increment_capacity(booking, result)
        return result

    def _record_payment(
        self, booking: Booking, session_obj: Dict[str, Any], stripe_payment_id: Optional[str]
    ) -> bool:
        try:
            with self.db.begin_nested():
                self.payment_repository.create_succeeded(
                    self.principal,
                    booking_id=booking.id,
                    stripe_payment_id=stripe_payment_id,
                    amount=int(session_obj.get("amount_total") or 0),
                    paid_at=datetime.now(timezone.utc),
                )
        except RepositoryException as exc:
            self.logger.error(
                "Payment record insert failed for booking %s (stripe id %s): %s",
                booking.id,
                stripe_payment_id,
                exc,
            )
            return False
        return True

    def _increment_capacity(self, booking: Booking, result: ReconciliationResult) -> None:
        try:
            with self.db.begin_nested():
                new_count = self.program_repository.increment_current_count(
                    self.principal, booking.event_id
                )
        except RepositoryException as exc:
            self.logger.error(
                "Capacity increment failed for program %s (booking %s): %s",
                booking.event_id,
                booking.id,
                exc,
            )
            return

        if new_count is None:
            result.oversubscribed = True
            result.message = "Program was already at capacity"
            prometheus_metrics.record_oversubscription()
            self.logger.error(
                "Program %s oversubscribed: paid booking %s confirmed beyond capacity",
                booking.event_id,
                booking.id,
            )
            return
        result.capacity_incremented = True
        self.logger.info("Program %s current_count is now %s", booking.event_id, new_count)

    def _duplicate(
        self, existing: Booking, stripe_payment_id: Optional[str]
    ) -> ReconciliationResult:
        self.logger.warning(
            "Booking %s already confirmed for user=%s program=%s; skipping",
            existing.id,
            existing.user_id,
            existing.event_id,
        )
        if stripe_payment_id and (
            self.payment_repository.find_by_stripe_payment_id(self.principal, stripe_payment_id)
            is None
        ):
            # Same pair paid twice through two checkout sessions.
            self.logger.warning(
                "Payment %s captured for already-booked user=%s program=%s; refund may be needed",
                stripe_payment_id,
                existing.user_id,
                existing.event_id,
            )
        return ReconciliationResult(
            status=WebhookEventStatus.DUPLICATE.value,
            event_type=CHECKOUT_SESSION_COMPLETED,
            booking_id=existing.id,
            message="Booking already confirmed",
        )

    # Ledger outcomes

    def _acknowledge_ignored(
        self, entry: WebhookEvent, event: Dict[str, Any], event_type: str, started: float
    ) -> ReconciliationResult:
        if event_type == PAYMENT_INTENT_SUCCEEDED:
            intent = (event.get("data") or {}).get("object") or {}
            self.logger.info("PaymentIntent %s succeeded", intent.get("id"))
        else:
            self.logger.info("Ignoring Stripe event type %s", event_type)
        with self.transaction():
            self.ledger.mark_processed(
                entry,
                status=WebhookEventStatus.IGNORED.value,
                duration_ms=self.ledger.elapsed_ms(started),
            )
        return ReconciliationResult(status=WebhookEventStatus.IGNORED.value, event_type=event_type)

    def _reject(
        self,
        entry: WebhookEvent,
        session_obj: Dict[str, Any],
        started: float,
        *,
        reason: str,
        message: str,
    ) -> None:
        self.logger.error("Rejecting checkout session %s: %s", session_obj.get("id"), reason)
        with self.transaction():
            self.ledger.mark_failed(
                entry,
                error=reason,
                duration_ms=self.ledger.elapsed_ms(started),
                status=WebhookEventStatus.REJECTED.value,
            )
        prometheus_metrics.record_webhook_outcome("rejected")
        raise MalformedEvent(
            message,
            details={"session_id": session_obj.get("id")},
        )

    def _record_failure(
        self, entry: WebhookEvent, failure: PersistenceFailure, started: float
    ) -> None:
        prometheus_metrics.record_webhook_outcome("failed")
        try:
            with self.transaction():
                self.ledger.mark_failed(
                    entry,
                    error=failure.message,
                    duration_ms=self.ledger.elapsed_ms(started),
                )
        except (ServiceException, RepositoryException):
            # Left in processing; the claim timeout frees it for the next redelivery.
            self.logger.exception("Failed to mark webhook ledger entry %s as failed", entry.id)
