# backend/hourgym/core/exceptions.py
"""
Domain-specific exceptions for HourGym.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Literal, Optional

from fastapi import status

from .constants import ERROR_BOOKING_CONFLICT, ERROR_PAST_BOOKING, ERROR_SLOT_NO_LONGER_AVAILABLE

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


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


class ValidationException(DomainException):
    """Raised when request validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Specific business exceptions

BookingValidationReason = Literal[
    "PAST_BOOKING", "DURATION_TOO_SHORT", "DURATION_TOO_LONG", "BOOKING_CONFLICT"
]


class BookingValidationException(BusinessRuleException):
    """
    Raised when a requested booking interval fails validation.

    ``reason`` is the machine-readable cause. Duration failures also name the
    violated ``bound`` ("min" or "max"). The message is safe to show to users.
    """

    def __init__(
        self,
        reason: BookingValidationReason,
        message: str,
        *,
        bound: Optional[Literal["min", "max"]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.reason = reason
        self.bound = bound
        merged: Dict[str, Any] = {"reason": reason}
        if bound:
            merged["bound"] = bound
        merged.update(details or {})
        super().__init__(message=message, code=reason, details=merged)

    @classmethod
    def past_booking(cls) -> "BookingValidationException":
        return cls("PAST_BOOKING", ERROR_PAST_BOOKING)

    @classmethod
    def too_short(cls, min_hours: int) -> "BookingValidationException":
        unit = "hour" if min_hours == 1 else "hours"
        return cls(
            "DURATION_TOO_SHORT",
            f"Minimum booking duration is {min_hours} {unit}",
            bound="min",
            details={"min_hours": min_hours},
        )

    @classmethod
    def too_long(cls, max_hours: int) -> "BookingValidationException":
        unit = "hour" if max_hours == 1 else "hours"
        return cls(
            "DURATION_TOO_LONG",
            f"Maximum booking duration is {max_hours} {unit}",
            bound="max",
            details={"max_hours": max_hours},
        )

    @classmethod
    def conflict(cls, conflicting_booking_id: Optional[str] = None) -> "BookingValidationException":
        details = {"conflicting_booking_id": conflicting_booking_id} if conflicting_booking_id else {}
        return cls("BOOKING_CONFLICT", ERROR_BOOKING_CONFLICT, details=details)


class CheckoutRefundedException(ConflictException):
    """A paid checkout that could not become a booking. Its payment is refunded before this propagates."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CHECKOUT_REFUNDED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details or {})


class SlotUnavailableException(CheckoutRefundedException):
    """Raised when the store rejects a booking because another one won the race."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message or ERROR_SLOT_NO_LONGER_AVAILABLE,
            code="SLOT_NO_LONGER_AVAILABLE",
            details=details,
        )


class PaymentGatewayException(ServiceException):
    """Raised when the payment provider fails. The message is generic and retry-safe."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="PAYMENT_GATEWAY_ERROR", details=details or {})


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
