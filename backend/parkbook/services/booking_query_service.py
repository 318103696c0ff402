# backend/parkbook/services/booking_query_service.py
"""
Read-only views over bookings.

Joins bookings with programs, parks, profiles and payments. A booking whose
holder never filled in a profile, or whose payment row was never written,
is still listed with placeholder values rather than treated as an error.
"""

from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import ProgramStatus
from ..core.exceptions import AuthenticationRequired, ProgramNotFound
from ..models.booking import Booking
from ..models.payment import Payment
from ..models.profile import Profile
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import (
    NO_PHONE,
    UNKNOWN_PAYMENT_STATUS,
    UNREGISTERED_NICKNAME,
    AdminBookingItem,
    AdminPaymentItem,
    DashboardSummary,
    MyBookingItem,
    ParticipantItem,
    ParticipantList,
    PaymentSummary,
)
from .base import BaseService
from .program_service import to_program_summary

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 50
ADMIN_LIST_LIMIT = 100
RECENT_BOOKINGS_LIMIT = 5


def payment_summary(payment: Optional[Payment]) -> PaymentSummary:
    if payment is None:
        return PaymentSummary(status=UNKNOWN_PAYMENT_STATUS, amount=None)
    return PaymentSummary(
        status=payment.status,
        amount=payment.amount,
        paid_at=payment.paid_at,
        stripe_payment_id=payment.stripe_payment_id,
    )


def _nickname(profile: Optional[Profile]) -> str:
    if profile is None or not profile.nickname:
        return UNREGISTERED_NICKNAME
    return profile.nickname


def _phone(profile: Optional[Profile]) -> str:
    if profile is None or not profile.phone:
        return NO_PHONE
    return profile.phone


def to_admin_booking_item(booking: Booking) -> AdminBookingItem:
    program = booking.program
    return AdminBookingItem(
        id=booking.id,
        user_id=booking.user_id,
        nickname=_nickname(booking.profile),
        phone=_phone(booking.profile),
        status=booking.status,
        created_at=booking.created_at,
        program_id=booking.event_id,
        program_title=program.title if program is not None else None,
        program_date=program.date if program is not None else None,
        park_name=program.park.name if program is not None and program.park else None,
        payment=payment_summary(booking.payment),
    )


class BookingQueryService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.program_repository = RepositoryFactory.create_program_repository(db)

    @BaseService.measure_operation("list_my_bookings")
    def list_my_bookings(self, principal: Principal) -> List[MyBookingItem]:
        if not principal.is_authenticated:
            raise AuthenticationRequired()
        bookings = self.booking_repository.list_for_user(principal, principal.id)
        return [
            MyBookingItem(
                id=booking.id,
                status=booking.status,
                created_at=booking.created_at,
                cancelled_at=booking.cancelled_at,
                program=to_program_summary(booking.program) if booking.program else None,
                payment=payment_summary(booking.payment),
            )
            for booking in bookings
        ]

    @BaseService.measure_operation("list_participants")
    def list_participants(self, principal: Principal, program_id: str) -> ParticipantList:
        """Bookings of one program in booking order, with profile fields or placeholders."""
        program = self.program_repository.get_program(program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        bookings = self.booking_repository.list_for_program(principal, program_id)
        participants = [
            ParticipantItem(
                booking_id=booking.id,
                user_id=booking.user_id,
                nickname=_nickname(booking.profile),
                phone=_phone(booking.profile),
                gender=booking.profile.gender if booking.profile else None,
                age_group=booking.profile.age_group if booking.profile else None,
                area=booking.profile.area if booking.profile else None,
                status=booking.status,
                created_at=booking.created_at,
                payment=payment_summary(booking.payment),
            )
            for booking in bookings
        ]
        return ParticipantList(program=to_program_summary(program), participants=participants)

    @BaseService.measure_operation("list_admin_bookings")
    def list_bookings(self, principal: Principal) -> List[AdminBookingItem]:
        bookings = self.booking_repository.list_recent(principal, limit=ADMIN_LIST_LIMIT)
        return [to_admin_booking_item(booking) for booking in bookings]

    @BaseService.measure_operation("search_bookings")
    def search_bookings(self, principal: Principal, term: Optional[str]) -> List[AdminBookingItem]:
        """Case-insensitive nickname/phone search; terms under two characters return nothing."""
        cleaned = (term or "").strip()
        if len(cleaned) < MIN_SEARCH_LENGTH:
            return []
        bookings = self.booking_repository.search_by_profile(
            principal, cleaned, limit=SEARCH_LIMIT
        )
        return [to_admin_booking_item(booking) for booking in bookings]

    @BaseService.measure_operation("list_admin_payments")
    def list_payments(self, principal: Principal) -> List[AdminPaymentItem]:
        payments = self.payment_repository.list_recent(principal, limit=ADMIN_LIST_LIMIT)
        items = []
        for payment in payments:
            booking = payment.booking
            items.append(
                AdminPaymentItem(
                    id=payment.id,
                    booking_id=payment.booking_id,
                    stripe_payment_id=payment.stripe_payment_id,
                    amount=payment.amount,
                    status=payment.status,
                    paid_at=payment.paid_at,
                    created_at=payment.created_at,
                    nickname=_nickname(booking.profile if booking else None),
                    program_title=(
                        booking.program.title if booking is not None and booking.program else None
                    ),
                )
            )
        return items

    @BaseService.measure_operation("dashboard")
    def dashboard(self, principal: Principal, *, today: date) -> DashboardSummary:
        """Today's open programs, this month's bookings and revenue, upcoming count."""
        month_start = datetime.combine(today.replace(day=1), time.min, tzinfo=timezone.utc)
        today_programs = self.program_repository.list_upcoming(
            from_date=today, on_date=today, status=ProgramStatus.OPEN.value
        )
        recent = self.booking_repository.list_recent(principal, limit=RECENT_BOOKINGS_LIMIT)
        return DashboardSummary(
            today_programs=[to_program_summary(program) for program in today_programs],
            monthly_bookings=self.booking_repository.count_confirmed_since(principal, month_start),
            monthly_revenue=self.payment_repository.sum_succeeded_since(principal, month_start),
            upcoming_open_programs=self.program_repository.count_by(
                status=ProgramStatus.OPEN.value, from_date=today
            ),
            recent_bookings=[to_admin_booking_item(booking) for booking in recent],
        )
