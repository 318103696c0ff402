"""
Idempotency ledger for inbound payment notifications.

Each provider event gets exactly one ``webhook_events`` row, keyed by
``(source, event_id)``. The row moves through

    received -> processing -> processed | ignored | duplicate | rejected
    processing -> failed -> processing (on redelivery)

and the handler only touches bookings while it holds the ``processing``
claim. A claim older than ``webhook_claim_timeout_seconds`` is treated as
abandoned by a crashed worker and can be taken over by a redelivery.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Any, Mapping

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import WebhookEventStatus
from ..core.exceptions import RepositoryException
from ..models.webhook_event import WebhookEvent
from ..repositories.base_repository import is_unique_violation
from ..repositories.factory import RepositoryFactory
from .base import BaseService

REDACTED = "***"
REDACTED_HEADERS = frozenset({"authorization", "cookie", "stripe-signature"})


def redact_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    return {
        name: (REDACTED if name.lower() in REDACTED_HEADERS else value)
        for name, value in headers.items()
    }


class WebhookLedgerService(BaseService):
    def __init__(self, db: Session, *, claim_timeout: timedelta | None = None) -> None:
        super().__init__(db)
        self.repository = RepositoryFactory.create_webhook_event_repository(db)
        self.claim_timeout = claim_timeout or timedelta(
            seconds=settings.webhook_claim_timeout_seconds
        )

    @BaseService.measure_operation("webhook_ledger.log_received")
    def log_received(
        self,
        *,
        source: str,
        event_type: str,
        payload: dict[str, Any],
        event_id: str | None,
        headers: Mapping[str, Any] | None = None,
    ) -> WebhookEvent:
        """
        Return the ledger row for this delivery, creating it on first sight.

        Redeliveries reuse the existing row and count up ``retry_count``. Two
        first deliveries racing on the unique key both end up with the same row.
        """
        stored_headers = redact_headers(headers) if headers else None
        if event_id:
            known = self.repository.find_by_source_and_event_id(source, event_id)
            if known is not None:
                return self._note_redelivery(known, stored_headers)

        try:
            with self.db.begin_nested():
                return self.repository.create(
                    source=source,
                    event_type=event_type or "unknown",
                    event_id=event_id,
                    payload=payload,
                    headers=stored_headers,
                    status=WebhookEventStatus.RECEIVED.value,
                    received_at=datetime.now(timezone.utc),
                    retry_count=0,
                )
        except RepositoryException as exc:
            if not (event_id and is_unique_violation(exc)):
                raise
            winner = self.repository.find_by_source_and_event_id(source, event_id)
            if winner is None:
                raise
            return self._note_redelivery(winner, stored_headers)

    def _note_redelivery(
        self, entry: WebhookEvent, stored_headers: dict[str, Any] | None
    ) -> WebhookEvent:
        self.logger.info(
            "Redelivery of %s event %s (status=%s)", entry.source, entry.event_id, entry.status
        )
        entry.retry_count = (entry.retry_count or 0) + 1
        entry.last_retry_at = datetime.now(timezone.utc)
        if stored_headers is not None:
            entry.headers = stored_headers
        self.repository.flush()
        return entry

    @BaseService.measure_operation("webhook_ledger.mark_processing")
    def mark_processing(self, entry: WebhookEvent) -> bool:
        """Take the processing claim; False while another live worker holds it."""
        taking_over = entry.status == WebhookEventStatus.PROCESSING.value
        claimed = self.repository.claim_for_processing(entry.id, stale_after=self.claim_timeout)
        if not claimed:
            return False
        if taking_over:
            self.logger.warning(
                "Taking over %s event %s abandoned in processing", entry.source, entry.event_id
            )
        self.db.expire(entry, ["status", "claimed_at"])
        entry.processing_error = None
        entry.processed_at = None
        self.repository.flush()
        return True

    @BaseService.measure_operation("webhook_ledger.mark_processed")
    def mark_processed(
        self,
        entry: WebhookEvent,
        *,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
        duration_ms: int | None = None,
        status: str = WebhookEventStatus.PROCESSED.value,
    ) -> WebhookEvent:
        entry.status = status
        entry.processed_at = datetime.now(timezone.utc)
        entry.related_entity_type = related_entity_type
        entry.related_entity_id = related_entity_id
        entry.processing_duration_ms = duration_ms
        self.repository.flush()
        return entry

    @BaseService.measure_operation("webhook_ledger.mark_failed")
    def mark_failed(
        self,
        entry: WebhookEvent,
        *,
        error: str,
        duration_ms: int | None = None,
        status: str = WebhookEventStatus.FAILED.value,
    ) -> WebhookEvent:
        """``failed`` is claimable by the next redelivery; ``rejected`` is final."""
        entry.status = status
        entry.processing_error = error
        entry.processed_at = datetime.now(timezone.utc)
        entry.processing_duration_ms = duration_ms
        self.repository.flush()
        return entry

    @BaseService.measure_operation("webhook_ledger.list_events")
    def list_events(
        self,
        *,
        source: str | None = None,
        status: str | None = None,
        event_type: str | None = None,
        since_hours: int = 24,
        limit: int = 50,
    ) -> list[WebhookEvent]:
        return self.repository.list_events(
            source=source,
            status=status,
            event_type=event_type,
            since_hours=since_hours,
            limit=limit,
        )

    @staticmethod
    def elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
