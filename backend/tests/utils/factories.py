"""Row builders for tests. Builders flush; callers decide when to commit."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
import uuid

from sqlalchemy.orm import Session

from parkbook.models import Booking, EventCategory, Park, Payment, Profile, Program


def future_date(days: int = 7) -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=days)


def new_user_id() -> str:
    return str(uuid.uuid4())


def make_park(db: Session, **overrides) -> Park:
    values = {
        "name": "代々木公園",
        "address": "東京都渋谷区代々木神園町2-1",
        "area": "渋谷",
        "prefecture": "東京都",
        "nearest_station": "原宿",
        "has_shower": False,
        "has_parking": True,
    }
    values.update(overrides)
    park = Park(**values)
    db.add(park)
    db.flush()
    return park


def make_category(db: Session, **overrides) -> EventCategory:
    values = {"name": "ランニング", "sort_order": 1}
    values.update(overrides)
    category = EventCategory(**values)
    db.add(category)
    db.flush()
    return category


def make_program(db: Session, park: Park, **overrides) -> Program:
    values = {
        "park_id": park.id,
        "title": "朝ラン 5km",
        "description": "初心者歓迎のグループラン",
        "date": future_date(),
        "start_time": time(7, 0),
        "end_time": time(8, 0),
        "price": 1500,
        "capacity": 10,
        "current_count": 0,
        "status": "open",
        "level": "beginner",
    }
    values.update(overrides)
    program = Program(**values)
    db.add(program)
    db.flush()
    return program


def make_profile(db: Session, user_id: str | None = None, **overrides) -> Profile:
    values = {
        "id": user_id or new_user_id(),
        "nickname": "たろう",
        "phone": "090-1234-5678",
        "gender": "male",
        "age_group": "30s",
        "area": "渋谷区",
        "role": "user",
    }
    values.update(overrides)
    profile = Profile(**values)
    db.add(profile)
    db.flush()
    return profile


def make_booking(
    db: Session, program: Program, user_id: str, *, status: str = "confirmed", **overrides
) -> Booking:
    booking = Booking(user_id=user_id, event_id=program.id, status=status, **overrides)
    db.add(booking)
    db.flush()
    return booking


def make_payment(db: Session, booking: Booking, **overrides) -> Payment:
    values = {
        "booking_id": booking.id,
        "stripe_payment_id": f"pi_{uuid.uuid4().hex[:16]}",
        "amount": 1500,
        "status": "succeeded",
        "paid_at": datetime.now(timezone.utc),
    }
    values.update(overrides)
    payment = Payment(**values)
    db.add(payment)
    db.flush()
    return payment
