# backend/hbot_booking/core/exceptions.py
"""
Domain-specific exceptions for the booking platform.

Services raise these; routes translate them with ``to_http_exception()`` and
``register_error_handlers`` catches whatever escapes.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

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

    def _detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=self._detail(),
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=self._detail())


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self._detail())


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=self._detail())


class UnauthorizedException(DomainException):
    """Raised when a caller cannot be authenticated."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=self._detail())


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Slot allocation


class SlotNotFoundException(NotFoundException):
    """No schedule slot exists for the requested date and time."""

    def __init__(self, slot_date: str, slot_time: str):
        super().__init__(
            message=f"No schedule slot for {slot_date} at {slot_time}",
            code="SLOT_NOT_FOUND",
            details={"date": slot_date, "time": slot_time},
        )


class SlotExhaustedException(ConflictException):
    """The slot exists but has no seats left."""

    def __init__(self, slot_date: str, slot_time: str):
        super().__init__(
            message=f"No seats left for {slot_date} at {slot_time}",
            code="SLOT_EXHAUSTED",
            details={"date": slot_date, "time": slot_time},
        )


class SlotInUseException(ConflictException):
    """Raised when deleting a slot that bookings still reference."""

    def __init__(self, slot_date: str, slot_time: str, booking_count: int):
        super().__init__(
            message=f"Slot {slot_date} {slot_time} is referenced by {booking_count} booking(s)",
            code="SLOT_IN_USE",
            details={"date": slot_date, "time": slot_time, "booking_count": booking_count},
        )


# Booking ledger


class BookingNotFoundException(NotFoundException):
    def __init__(
        self,
        *,
        booking_id: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
    ):
        if payment_intent_id:
            message = f"No booking references payment intent {payment_intent_id}"
        else:
            message = f"Booking {booking_id} not found"
        details = {
            key: value
            for key, value in (
                ("booking_id", booking_id),
                ("payment_intent_id", payment_intent_id),
            )
            if value
        }
        super().__init__(message=message, code="BOOKING_NOT_FOUND", details=details)


class PaymentIntentAlreadyAttachedException(ConflictException):
    """A booking already carries a different payment intent id."""

    def __init__(self, booking_id: str, existing_intent_id: str, new_intent_id: str):
        super().__init__(
            message=f"Booking {booking_id} is already bound to another payment intent",
            code="PAYMENT_INTENT_ALREADY_ATTACHED",
            details={
                "booking_id": booking_id,
                "existing_payment_intent_id": existing_intent_id,
                "payment_intent_id": new_intent_id,
            },
        )


# Payment gateway / reconciliation


class WebhookAuthenticationException(UnauthorizedException):
    """Webhook payload failed signature verification."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="WEBHOOK_SIGNATURE_INVALID")

    def to_http_exception(self) -> HTTPException:
        # Stripe treats 400 as a permanent rejection of the delivery
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=self._detail())


class UpstreamServiceException(ServiceException):
    """The payment gateway or the database is transiently unavailable."""

    def __init__(
        self,
        message: str = "Upstream service temporarily unavailable",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="UPSTREAM_UNAVAILABLE", details=details)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=self._detail(),
            headers={"Retry-After": "2"},
        )


class InconsistentStateException(ServiceException):
    """Booking is completed but its credit package could not be appended."""

    def __init__(self, booking_id: str, reason: str):
        super().__init__(
            message=f"Booking {booking_id} completed without its credit package: {reason}",
            code="CREDIT_GRANT_INCONSISTENT",
            details={"booking_id": booking_id, "reason": reason},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Wraps query failures and constraint violations raised by SQLAlchemy.
    """
