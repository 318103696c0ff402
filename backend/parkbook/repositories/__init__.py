"""Data access layer. Repositories flush but never commit."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .park_repository import EventCategoryRepository, ParkRepository
from .payment_repository import PaymentRepository
from .profile_repository import ProfileRepository
from .program_repository import ProgramRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "EventCategoryRepository",
    "ParkRepository",
    "PaymentRepository",
    "ProfileRepository",
    "ProgramRepository",
    "RepositoryFactory",
    "WebhookEventRepository",
]
