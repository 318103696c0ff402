from __future__ import annotations

import pytest

from parkbook.models import Program
from tests.utils.factories import (
    future_date,
    make_booking,
    make_park,
    make_payment,
    make_profile,
    make_program,
    new_user_id,
)
from tests.utils.stripe_events import checkout_completed, encode, sign


@pytest.fixture
def admin_headers(session_factory, auth_headers):
    with session_factory() as session:
        admin = make_profile(session, nickname="管理者", role="admin")
        session.commit()
        return auth_headers(admin.id)


@pytest.fixture
def program(session_factory):
    with session_factory() as session:
        program = make_program(session, make_park(session), capacity=4)
        session.commit()
        return program


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/v1/admin/dashboard"),
        ("get", "/api/v1/admin/programs"),
        ("get", "/api/v1/admin/bookings"),
        ("get", "/api/v1/admin/bookings/search?q=tar"),
        ("get", "/api/v1/admin/payments"),
        ("get", "/api/v1/admin/webhook-events"),
    ],
)
def test_admin_routes_reject_non_admins(client, auth_headers, session_factory, method, path):
    with session_factory() as session:
        member = make_profile(session)
        session.commit()

    anonymous = getattr(client, method)(path)
    member_response = getattr(client, method)(path, headers=auth_headers(member.id))

    assert anonymous.status_code == 401
    assert member_response.status_code == 403
    assert member_response.json()["code"] == "FORBIDDEN"


def test_participants_include_placeholders(client, admin_headers, session_factory, program):
    with session_factory() as session:
        stored = session.get(Program, program.id)
        taro = make_profile(session, nickname="たろう", phone="090-1111-2222")
        paid = make_booking(session, stored, taro.id)
        make_payment(session, paid, amount=1500)
        stranger = new_user_id()
        make_booking(session, stored, stranger)
        session.commit()

    response = client.get(
        f"/api/v1/admin/programs/{program.id}/participants", headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["program"]["availability"]["capacity"] == 4
    by_user = {p["user_id"]: p for p in body["participants"]}
    assert by_user[taro.id]["nickname"] == "たろう"
    assert by_user[taro.id]["phone"] == "090-1111-2222"
    assert by_user[taro.id]["payment"]["amount"] == 1500
    assert by_user[stranger]["nickname"] == "(未登録)"
    assert by_user[stranger]["phone"] == "-"
    assert by_user[stranger]["payment"] == {
        "status": "unknown",
        "amount": None,
        "paid_at": None,
        "stripe_payment_id": None,
    }


def test_search_requires_two_characters(client, admin_headers, session_factory, program):
    with session_factory() as session:
        taro = make_profile(session, nickname="Taro")
        make_booking(session, session.get(Program, program.id), taro.id)
        session.commit()

    short = client.get("/api/v1/admin/bookings/search", params={"q": "t"}, headers=admin_headers)
    found = client.get("/api/v1/admin/bookings/search", params={"q": "ta"}, headers=admin_headers)

    assert short.json() == []
    assert [b["nickname"] for b in found.json()] == ["Taro"]


def test_create_update_and_close_program(client, admin_headers, session_factory):
    with session_factory() as session:
        park = make_park(session)
        session.commit()

    created = client.post(
        "/api/v1/admin/programs",
        json={
            "park_id": park.id,
            "title": "Trail Run",
            "date": future_date(14).isoformat(),
            "start_time": "08:00:00",
            "end_time": "10:00:00",
            "price": 2500,
            "capacity": 6,
            "level": "intermediate",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    program_id = created.json()["id"]
    assert created.json()["availability"]["remaining"] == 6

    updated = client.patch(
        f"/api/v1/admin/programs/{program_id}", json={"capacity": 8}, headers=admin_headers
    )
    assert updated.json()["availability"]["capacity"] == 8

    closed = client.patch(
        f"/api/v1/admin/programs/{program_id}/status", json={"status": "closed"}, headers=admin_headers
    )
    assert closed.json()["status"] == "closed"

    invalid = client.patch(
        f"/api/v1/admin/programs/{program_id}/status", json={"status": "archived"}, headers=admin_headers
    )
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "INVALID_STATUS"


def test_create_program_rejects_inverted_times(client, admin_headers, session_factory):
    with session_factory() as session:
        park = make_park(session)
        session.commit()

    response = client.post(
        "/api/v1/admin/programs",
        json={
            "park_id": park.id,
            "title": "Backwards",
            "date": future_date(3).isoformat(),
            "start_time": "10:00:00",
            "end_time": "09:00:00",
            "price": 0,
            "capacity": 1,
        },
        headers=admin_headers,
    )

    assert response.status_code == 422


def test_recount_repairs_counter(client, admin_headers, session_factory, program):
    with session_factory() as session:
        stored = session.get(Program, program.id)
        make_booking(session, stored, new_user_id())
        make_booking(session, stored, new_user_id())
        session.commit()

    response = client.post(f"/api/v1/admin/programs/{program.id}/recount", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "program_id": program.id,
        "previous_count": 0,
        "current_count": 2,
        "capacity": 4,
    }


def test_webhook_ledger_and_dashboard(client, admin_headers, program):
    event = checkout_completed(program.id, new_user_id(), amount_total=1500)
    payload = encode(event)
    client.post(
        "/api/v1/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": sign(payload), "Content-Type": "application/json"},
    )

    ledger = client.get("/api/v1/admin/webhook-events", headers=admin_headers)
    dashboard = client.get("/api/v1/admin/dashboard", headers=admin_headers)
    payments = client.get("/api/v1/admin/payments", headers=admin_headers)

    assert ledger.status_code == 200
    (entry,) = ledger.json()
    assert entry["event_id"] == event["id"]
    assert entry["status"] == "processed"
    assert dashboard.json()["monthly_bookings"] == 1
    assert dashboard.json()["monthly_revenue"] == 1500
    assert [p["amount"] for p in payments.json()] == [1500]
