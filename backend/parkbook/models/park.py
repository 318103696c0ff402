"""Venue and category catalogue models."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func, text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Park(Base):
    """A park where programs are held."""

    __tablename__ = "parks"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=True)
    area = Column(String(100), nullable=True)
    prefecture = Column(String(20), nullable=True)
    nearest_station = Column(String(100), nullable=True)
    has_shower = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    has_parking = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    programs = relationship("Program", back_populates="park")

    def __repr__(self) -> str:
        return f"<Park {self.name}>"


class EventCategory(Base):
    """Sport category of a program (running, yoga, ...)."""

    __tablename__ = "event_categories"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0, server_default=text("0"))

    programs = relationship("Program", back_populates="category")

    def __repr__(self) -> str:
        return f"<EventCategory {self.name}>"
