"""Program (scheduled session) model."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ProgramStatus
from ..database import Base


class Program(Base):
    """
    A bookable session at a park.

    ``current_count`` is the capacity ledger: the number of confirmed seats.
    It is only moved by the payment reconciliation workflow and the admin
    recount, never by the checkout request.
    """

    __tablename__ = "events"

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_events_capacity_positive"),
        CheckConstraint("current_count >= 0", name="ck_events_current_count_non_negative"),
        CheckConstraint("current_count <= capacity", name="ck_events_current_count_ceiling"),
        CheckConstraint("price >= 0", name="ck_events_price_non_negative"),
        CheckConstraint("status IN ('open', 'closed', 'cancelled')", name="ck_events_status"),
        Index("ix_events_date_status", "date", "status"),
        Index("ix_events_park_id", "park_id"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    park_id = Column(String(26), ForeignKey("parks.id"), nullable=False)
    category_id = Column(String(26), ForeignKey("event_categories.id"), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    price = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    current_count = Column(Integer, nullable=False, default=0, server_default=text("0"))
    status = Column(
        String(20),
        nullable=False,
        default=ProgramStatus.OPEN.value,
        server_default=text("'open'"),
    )
    level = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    park = relationship("Park", back_populates="programs", lazy="joined")
    category = relationship("EventCategory", back_populates="programs", lazy="joined")
    bookings = relationship("Booking", back_populates="program")

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.current_count, 0)

    @property
    def is_full(self) -> bool:
        return self.current_count >= self.capacity

    @property
    def is_open(self) -> bool:
        return self.status == ProgramStatus.OPEN.value

    def __repr__(self) -> str:
        return f"<Program {self.id} {self.date} {self.current_count}/{self.capacity}>"
