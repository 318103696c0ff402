from __future__ import annotations

import pytest

from parkbook.core.exceptions import (
    AlreadyBooked,
    AuthenticationRequired,
    NotAcceptingBookings,
    PaymentProviderError,
    PaymentProviderNotConfigured,
    ProgramFull,
    ProgramNotFound,
    ValidationException,
)
from parkbook.integrations.stripe_checkout import StripeCheckoutError
from parkbook.models import Booking
from parkbook.principal import ANONYMOUS, UserPrincipal
from parkbook.services.checkout_service import CheckoutService
from tests.utils.factories import make_booking, make_park, make_program, new_user_id


@pytest.fixture
def user() -> UserPrincipal:
    return UserPrincipal(user_id=new_user_id(), email="runner@example.com")


@pytest.fixture
def service(db, fake_gateway) -> CheckoutService:
    return CheckoutService(db, checkout_client=fake_gateway)


@pytest.fixture
def program(db):
    return make_program(db, make_park(db, name="代々木公園"), capacity=10, price=1500)


def test_anonymous_caller_is_refused_first(service, program, fake_gateway):
    with pytest.raises(AuthenticationRequired):
        service.start_checkout(ANONYMOUS, program.id)
    with pytest.raises(AuthenticationRequired):
        service.start_checkout(ANONYMOUS, None)
    assert fake_gateway.calls == []


def test_missing_program_id(service, user):
    with pytest.raises(ValidationException) as exc_info:
        service.start_checkout(user, None)
    assert exc_info.value.message == "eventId is required"


def test_unknown_program(service, user):
    with pytest.raises(ProgramNotFound):
        service.start_checkout(user, "01HZXMISSING0000000000000")


@pytest.mark.parametrize("status", ["closed", "cancelled"])
def test_program_not_open(db, service, user, status):
    program = make_program(db, make_park(db), status=status, capacity=2, current_count=2)

    with pytest.raises(NotAcceptingBookings) as exc_info:
        service.start_checkout(user, program.id)
    assert exc_info.value.details["status"] == status


def test_full_program_is_checked_before_existing_booking(db, service, user):
    program = make_program(db, make_park(db), capacity=1, current_count=1)
    make_booking(db, program, user.id)

    with pytest.raises(ProgramFull):
        service.start_checkout(user, program.id)


def test_already_booked(db, service, user, program, fake_gateway):
    make_booking(db, program, user.id)

    with pytest.raises(AlreadyBooked):
        service.start_checkout(user, program.id)
    assert fake_gateway.calls == []


def test_cancelled_booking_does_not_block_checkout(db, service, user, program):
    make_booking(db, program, user.id, status="cancelled")

    start = service.start_checkout(user, program.id)

    assert start.session_id == "cs_test_1"


def test_success_opens_session_without_touching_bookings(db, service, user, program, fake_gateway):
    start = service.start_checkout(
        user,
        program.id,
        origin="https://parkbook.example.com/",
        customer_email=user.email,
    )

    assert start.url.startswith("https://checkout.stripe.com/")
    (call,) = fake_gateway.calls
    assert call["currency"] == "jpy"
    assert call["unit_amount"] == 1500
    assert call["product_name"] == program.title
    assert call["product_description"].startswith("代々木公園 - ")
    assert call["metadata"] == {"eventId": program.id, "userId": user.id, "price": "1500"}
    assert call["success_url"] == (
        f"https://parkbook.example.com/programs/{program.id}/complete"
        "?session_id={CHECKOUT_SESSION_ID}"
    )
    assert call["cancel_url"] == f"https://parkbook.example.com/programs/{program.id}/checkout"
    assert call["customer_email"] == "runner@example.com"

    assert db.query(Booking).count() == 0
    db.refresh(program)
    assert program.current_count == 0


def test_frontend_url_is_used_without_origin(service, user, program, fake_gateway):
    service.start_checkout(user, program.id)

    assert fake_gateway.calls[0]["cancel_url"] == (
        f"http://localhost:3000/programs/{program.id}/checkout"
    )


def test_payment_provider_not_configured(db, user, program):
    service = CheckoutService(db, checkout_client=None)

    with pytest.raises(PaymentProviderNotConfigured):
        service.start_checkout(user, program.id)


def test_payment_provider_failure(db, user, program):
    class FailingGateway:
        def create_checkout_session(self, **kwargs):
            raise StripeCheckoutError("rate limited", code="rate_limit")

    service = CheckoutService(db, checkout_client=FailingGateway())

    with pytest.raises(PaymentProviderError) as exc_info:
        service.start_checkout(user, program.id)
    assert exc_info.value.details == {"provider_code": "rate_limit"}
