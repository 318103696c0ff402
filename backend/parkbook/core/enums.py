# backend/parkbook/core/enums.py
"""
Core enums for the Parkbook platform.

These mirror the enumerated column values stored in the managed database,
so the string values must stay exactly as they are persisted.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles stored on ``profiles.role``."""

    USER = "user"
    ADMIN = "admin"


class ProgramStatus(str, Enum):
    """Lifecycle of a session (``events.status``)."""

    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class ProgramLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL = "all"


class BookingStatus(str, Enum):
    """
    Entitlement status of a booking.

    A (user, session) pair moves none -> confirmed -> cancelled; at most one
    confirmed row may exist per pair.
    """

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class AgeGroup(str, Enum):
    TEENS = "10s"
    TWENTIES = "20s"
    THIRTIES = "30s"
    FORTIES = "40s"
    FIFTIES = "50s"
    SIXTIES_PLUS = "60s_plus"


class WebhookEventStatus(str, Enum):
    """Processing states of a webhook ledger entry."""

    RECEIVED = "received"
    PROCESSING = "processing"
    PROCESSED = "processed"
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    FAILED = "failed"


# Statuses that are final; redeliveries of these events are acknowledged without work.
TERMINAL_WEBHOOK_STATUSES = frozenset(
    {
        WebhookEventStatus.PROCESSED.value,
        WebhookEventStatus.IGNORED.value,
        WebhookEventStatus.DUPLICATE.value,
        WebhookEventStatus.REJECTED.value,
    }
)
