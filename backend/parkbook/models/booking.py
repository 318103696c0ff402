"""Booking model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, func, text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import BookingStatus
from ..database import Base

_CONFIRMED_ONLY = text("status = 'confirmed'")


class Booking(Base):
    """A user's seat in a program."""

    __tablename__ = "bookings"

    __table_args__ = (
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="ck_bookings_status"),
        # At most one confirmed booking per (user, program); cancelled rows may repeat.
        Index(
            "uq_bookings_user_event_confirmed",
            "user_id",
            "event_id",
            unique=True,
            postgresql_where=_CONFIRMED_ONLY,
            sqlite_where=_CONFIRMED_ONLY,
        ),
        Index("ix_bookings_event_id", "event_id"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    # auth user id; profiles may not exist yet, so there is no FK to profiles
    user_id = Column(String(36), nullable=False, index=True)
    event_id = Column(String(26), ForeignKey("events.id"), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=BookingStatus.CONFIRMED.value,
        server_default=text("'confirmed'"),
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    program = relationship("Program", back_populates="bookings")
    payments = relationship(
        "Payment",
        back_populates="booking",
        order_by="Payment.created_at",
    )
    profile = relationship(
        "Profile",
        primaryjoin="foreign(Booking.user_id) == Profile.id",
        viewonly=True,
        uselist=False,
    )

    @property
    def payment(self):
        """First payment record, or None when the webhook failed to write one."""
        return self.payments[0] if self.payments else None

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED.value

    def __repr__(self) -> str:
        return f"<Booking {self.id} user={self.user_id} event={self.event_id} {self.status}>"
