"""Pure mapping helpers: capacity flags, checkout description and placeholders."""

from __future__ import annotations

from datetime import date, time

from sqlalchemy.exc import IntegrityError

from parkbook.core.exceptions import ProgramFull, RepositoryException, WebhookInProgress
from parkbook.models import Park, Program
from parkbook.repositories.base_repository import is_unique_violation
from parkbook.services.booking_query_service import payment_summary
from parkbook.services.checkout_service import describe_program
from parkbook.services.program_service import capacity_status


def _program(capacity: int, current_count: int) -> Program:
    program = Program(
        id="01HZXPROGRAM0000000000000",
        park_id="01HZXPARK000000000000000",
        title="Yoga",
        date=date(2026, 11, 1),
        start_time=time(9, 0),
        end_time=time(10, 30),
        price=2000,
        capacity=capacity,
        current_count=current_count,
        status="open",
    )
    program.park = Park(id="01HZXPARK000000000000000", name="井の頭公園")
    return program


def test_capacity_status_counts_remaining_seats():
    status = capacity_status(_program(10, 4), threshold=3)

    assert status.remaining == 6
    assert not status.is_full
    assert not status.is_almost_full


def test_capacity_status_flags_almost_full_at_threshold():
    status = capacity_status(_program(10, 7), threshold=3)

    assert status.remaining == 3
    assert status.is_almost_full


def test_capacity_status_full_program_is_not_almost_full():
    status = capacity_status(_program(5, 5), threshold=3)

    assert status.remaining == 0
    assert status.is_full
    assert not status.is_almost_full


def test_describe_program_uses_park_date_and_times():
    assert describe_program(_program(5, 0)) == "井の頭公園 - 2026-11-01 09:00〜10:30"


def test_payment_summary_placeholder_for_missing_payment():
    summary = payment_summary(None)

    assert summary.status == "unknown"
    assert summary.amount is None


def test_is_unique_violation_reads_chained_integrity_error():
    integrity = IntegrityError(
        "INSERT INTO bookings", {}, Exception("UNIQUE constraint failed: bookings.user_id")
    )
    wrapped = RepositoryException("Integrity constraint violated")
    wrapped.__cause__ = integrity

    assert is_unique_violation(wrapped)
    assert is_unique_violation(integrity)


def test_is_unique_violation_ignores_other_failures():
    check_failure = IntegrityError(
        "UPDATE events", {}, Exception("CHECK constraint failed: ck_events_current_count_ceiling")
    )
    wrapped = RepositoryException("Integrity constraint violated")
    wrapped.__cause__ = check_failure

    assert not is_unique_violation(wrapped)
    assert not is_unique_violation(RepositoryException("Query failed"))


def test_domain_exceptions_map_to_http_status():
    full = ProgramFull("p1", 10).to_http_exception()
    assert full.status_code == 409
    assert full.detail["code"] == "PROGRAM_FULL"

    busy = WebhookInProgress("evt_1").to_http_exception()
    assert busy.status_code == 503
    assert busy.headers == {"Retry-After": "5"}
