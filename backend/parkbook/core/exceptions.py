# backend/parkbook/core/exceptions.py
"""
Domain-specific exceptions for the Parkbook platform.

These exceptions carry a stable ``code`` that the API layer exposes in the
problem body, so clients can branch on the code rather than the message.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when the request conflicts with the current state of a resource."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Checkout denials


class AuthenticationRequired(UnauthorizedException):
    def __init__(self, message: str = "Login is required") -> None:
        super().__init__(message=message, code="AUTHENTICATION_REQUIRED")


class ProgramNotFound(NotFoundException):
    def __init__(self, program_id: str) -> None:
        super().__init__(
            message="Program not found",
            code="PROGRAM_NOT_FOUND",
            details={"program_id": program_id},
        )


class NotAcceptingBookings(ConflictException):
    """The program exists but its status is not ``open``."""

    def __init__(self, program_id: str, program_status: str) -> None:
        super().__init__(
            message="This program is not accepting bookings",
            code="NOT_ACCEPTING_BOOKINGS",
            details={"program_id": program_id, "status": program_status},
        )


class ProgramFull(ConflictException):
    def __init__(self, program_id: str, capacity: int) -> None:
        super().__init__(
            message="This program is full",
            code="PROGRAM_FULL",
            details={"program_id": program_id, "capacity": capacity},
        )


class AlreadyBooked(ConflictException):
    def __init__(self, program_id: str) -> None:
        super().__init__(
            message="You have already booked this program",
            code="ALREADY_BOOKED",
            details={"program_id": program_id},
        )


# Payment notification outcomes


class InvalidSignature(ValidationException):
    """The notification body does not match the ``Stripe-Signature`` header."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message=message, code="INVALID_SIGNATURE")


class MalformedEvent(ValidationException):
    """The notification is authentic but cannot be reconciled as sent."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message=message, code="MALFORMED_EVENT", details=details)


class PersistenceFailure(ServiceException):
    """
    The booking could not be written.

    Answered with a 5xx so the payment processor redelivers the event.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message=message, code="PERSISTENCE_FAILURE", details=details)


class WebhookInProgress(ServiceException):
    """Another worker currently holds the same notification."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, event_id: str) -> None:
        super().__init__(
            message="Event is already being processed",
            code="PROCESSING_IN_PROGRESS",
            details={"event_id": event_id},
        )

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "5"}
        return exc


class PaymentProviderError(ServiceException):
    """The payment processor rejected or failed a request."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message=message, code="PAYMENT_PROVIDER_ERROR", details=details)


class PaymentProviderNotConfigured(ServiceException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self) -> None:
        super().__init__(
            message="Payment processing is not configured",
            code="PAYMENT_PROVIDER_NOT_CONFIGURED",
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures or constraint violations. The originating SQLAlchemy
    error is always chained as ``__cause__``.
    """


class AccessDeniedException(ForbiddenException):
    """Raised by repositories when the calling principal may not touch a row set."""

    def __init__(self, action: str, principal_id: str) -> None:
        super().__init__(
            message=f"Principal is not allowed to {action}",
            code="FORBIDDEN",
            details={"action": action, "principal": principal_id},
        )
