"""
Database models for the Parkbook platform.

Table names follow the managed database (``events`` holds programs).
"""

from .booking import Booking
from .park import EventCategory, Park
from .payment import Payment
from .profile import Profile
from .program import Program
from .webhook_event import WebhookEvent

__all__ = [
    "Booking",
    "EventCategory",
    "Park",
    "Payment",
    "Profile",
    "Program",
    "WebhookEvent",
]
