from __future__ import annotations

from datetime import datetime, timedelta, timezone

from parkbook.models.webhook_event import WebhookEvent
from parkbook.repositories.webhook_event_repository import WebhookEventRepository


def _event(db, status: str = "received", event_id: str = "evt_1") -> WebhookEvent:
    event = WebhookEvent(
        source="stripe",
        event_type="checkout.session.completed",
        event_id=event_id,
        payload={"id": event_id},
        status=status,
    )
    db.add(event)
    db.flush()
    return event


def test_claim_is_granted_once(db):
    repo = WebhookEventRepository(db)
    event = _event(db)

    assert repo.claim_for_processing(event.id) is True
    assert repo.claim_for_processing(event.id) is False

    db.expire(event)
    assert event.status == "processing"


def test_failed_events_can_be_claimed_again(db):
    repo = WebhookEventRepository(db)
    event = _event(db, status="failed")

    assert repo.claim_for_processing(event.id) is True


def test_terminal_events_cannot_be_claimed(db):
    repo = WebhookEventRepository(db)
    processed = _event(db, status="processed", event_id="evt_done")
    rejected = _event(db, status="rejected", event_id="evt_bad")

    assert repo.claim_for_processing(processed.id) is False
    assert repo.claim_for_processing(rejected.id) is False


def test_list_events_filters_by_status(db):
    repo = WebhookEventRepository(db)
    _event(db, status="processed", event_id="evt_a")
    failed = _event(db, status="failed", event_id="evt_b")

    events = repo.list_events(source="stripe", status="failed")

    assert [e.id for e in events] == [failed.id]


def test_abandoned_processing_claim_can_be_taken_over(db):
    repo = WebhookEventRepository(db)
    long_ago = datetime.now(timezone.utc) - timedelta(minutes=10)
    event = _event(db, status="processing")
    event.claimed_at = long_ago
    event.received_at = long_ago
    db.flush()

    assert repo.claim_for_processing(event.id) is False
    assert repo.claim_for_processing(event.id, stale_after=timedelta(minutes=5)) is True
    # the takeover refreshed claimed_at, so the new claim is live
    assert repo.claim_for_processing(event.id, stale_after=timedelta(minutes=5)) is False


def test_live_processing_claim_is_not_taken_over(db):
    repo = WebhookEventRepository(db)
    event = _event(db)

    assert repo.claim_for_processing(event.id, stale_after=timedelta(minutes=5)) is True
    assert repo.claim_for_processing(event.id, stale_after=timedelta(minutes=5)) is False
