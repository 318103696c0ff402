# backend/parkbook/repositories/factory.py
"""
Repository Factory for the Parkbook platform.

Services obtain repositories through this factory so tests can patch a
single construction point.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository
from .park_repository import EventCategoryRepository, ParkRepository
from .payment_repository import PaymentRepository
from .profile_repository import ProfileRepository
from .program_repository import ProgramRepository
from .webhook_event_repository import WebhookEventRepository


class RepositoryFactory:
    """Factory for creating repository instances."""

    @staticmethod
    def create_program_repository(db: Session) -> ProgramRepository:
        return ProgramRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> PaymentRepository:
        return PaymentRepository(db)

    @staticmethod
    def create_profile_repository(db: Session) -> ProfileRepository:
        return ProfileRepository(db)

    @staticmethod
    def create_park_repository(db: Session) -> ParkRepository:
        return ParkRepository(db)

    @staticmethod
    def create_category_repository(db: Session) -> EventCategoryRepository:
        return EventCategoryRepository(db)

    @staticmethod
    def create_webhook_event_repository(db: Session) -> WebhookEventRepository:
        return WebhookEventRepository(db)
