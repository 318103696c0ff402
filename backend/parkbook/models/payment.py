"""Payment record model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func, text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import PaymentStatus
from ..database import Base


class Payment(Base):
    """Record of a captured checkout, written by the payment webhook."""

    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed', 'refunded')",
            name="ck_payments_status",
        ),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # payment_intent id, or the checkout session id when no intent was attached
    stripe_payment_id = Column(String(255), nullable=True, unique=True)
    amount = Column(Integer, nullable=False, default=0, server_default=text("0"))
    status = Column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        server_default=text("'pending'"),
    )
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    booking = relationship("Booking", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment booking={self.booking_id} status={self.status} amount={self.amount}>"
