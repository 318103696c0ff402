"""Repository helpers for the webhook event ledger."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import cast

from sqlalchemy import and_, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import WebhookEventStatus
from ..core.exceptions import RepositoryException
from ..models.webhook_event import WebhookEvent
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_CLAIMABLE_STATUSES = (WebhookEventStatus.RECEIVED.value, WebhookEventStatus.FAILED.value)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    """Repository for webhook ledger queries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, WebhookEvent)

    def find_by_source_and_event_id(self, source: str, event_id: str) -> WebhookEvent | None:
        """Find webhook event by source and provider event ID."""
        query = self._build_query().filter(
            WebhookEvent.source == source, WebhookEvent.event_id == event_id
        )
        return cast(WebhookEvent | None, self._execute_first(query))

    def claim_for_processing(
        self, event_pk: str, *, stale_after: timedelta | None = None
    ) -> bool:
        """
        Move an event to ``processing`` if nobody else holds it.

        ``received`` and ``failed`` rows can always be claimed, so a redelivery of
        a failed event is retried while a concurrent duplicate is turned away.
        With ``stale_after``, a ``processing`` row claimed longer ago than that
        is taken over as well; its worker is presumed dead.
        """
        claimable = WebhookEvent.status.in_(_CLAIMABLE_STATUSES)
        if stale_after is not None:
            cutoff = _now_utc() - stale_after
            claimable = or_(
                claimable,
                and_(
                    WebhookEvent.status == WebhookEventStatus.PROCESSING.value,
                    func.coalesce(WebhookEvent.claimed_at, WebhookEvent.received_at) < cutoff,
                ),
            )
        try:
            result = self.db.execute(
                update(WebhookEvent)
                .where(WebhookEvent.id == event_pk, claimable)
                .values(status=WebhookEventStatus.PROCESSING.value, claimed_at=_now_utc())
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self.logger.error("Failed to claim webhook event %s: %s", event_pk, exc)
            raise RepositoryException("Failed to claim webhook event") from exc
        return result.rowcount == 1

    def list_events(
        self,
        *,
        source: str | None = None,
        status: str | None = None,
        event_type: str | None = None,
        since_hours: int = 24,
        limit: int = 50,
    ) -> list[WebhookEvent]:
        """Return recent webhook events filtered by criteria."""
        cutoff = _now_utc() - timedelta(hours=since_hours)
        query = self._build_query().filter(WebhookEvent.received_at >= cutoff)
        if source:
            query = query.filter(WebhookEvent.source == source)
        if status:
            query = query.filter(WebhookEvent.status == status)
        if event_type:
            query = query.filter(WebhookEvent.event_type == event_type)
        query = query.order_by(WebhookEvent.received_at.desc()).limit(limit)
        return self._execute_query(query)
