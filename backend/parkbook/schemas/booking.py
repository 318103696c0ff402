"""Booking, participant and admin read-view schemas."""

from datetime import date, datetime
from typing import List, Optional

from ._strict_base import StrictModel
from .program import ProgramSummary

# Placeholders shown when a booking holder has no profile or no payment row.
UNREGISTERED_NICKNAME = "(未登録)"
NO_PHONE = "-"
UNKNOWN_PAYMENT_STATUS = "unknown"


class PaymentSummary(StrictModel):
    status: str
    amount: Optional[int] = None
    paid_at: Optional[datetime] = None
    stripe_payment_id: Optional[str] = None


class MyBookingItem(StrictModel):
    id: str
    status: str
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    program: Optional[ProgramSummary] = None
    payment: PaymentSummary


class ParticipantItem(StrictModel):
    booking_id: str
    user_id: str
    nickname: str
    phone: str
    gender: Optional[str] = None
    age_group: Optional[str] = None
    area: Optional[str] = None
    status: str
    created_at: datetime
    payment: PaymentSummary


class ParticipantList(StrictModel):
    program: ProgramSummary
    participants: List[ParticipantItem]


class AdminBookingItem(StrictModel):
    id: str
    user_id: str
    nickname: str
    phone: str
    status: str
    created_at: datetime
    program_id: str
    program_title: Optional[str] = None
    program_date: Optional[date] = None
    park_name: Optional[str] = None
    payment: PaymentSummary


class AdminPaymentItem(StrictModel):
    id: str
    booking_id: str
    stripe_payment_id: Optional[str] = None
    amount: int
    status: str
    paid_at: Optional[datetime] = None
    created_at: datetime
    nickname: str
    program_title: Optional[str] = None


class DashboardSummary(StrictModel):
    today_programs: List[ProgramSummary]
    monthly_bookings: int
    monthly_revenue: int
    upcoming_open_programs: int
    recent_bookings: List[AdminBookingItem]


class CapacityRepairResponse(StrictModel):
    program_id: str
    previous_count: int
    current_count: int
    capacity: int
