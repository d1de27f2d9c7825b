# backend/hbot_booking/services/booking_service.py
"""
Booking ledger service.

Payment status moves pending -> completed or pending -> failed exactly once.
Completion and failure are driven by the payment intent id because that is
all the gateway knows; cancellation is driven by booking id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..constants.payment_status import BookingPaymentStatus
from ..core.config import settings
from ..core.exceptions import BookingNotFoundException, PaymentIntentAlreadyAttachedException
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .slot_service import SlotService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingDetails:
    first_name: str
    last_name: str
    email: str
    booking_date: date
    booking_time: str
    duration: int
    location: str
    group_size: int = 1
    phone: Optional[str] = None
    service_id: Optional[str] = None
    user_id: Optional[str] = None


class BookingService(BaseService):
    """Creates bookings and applies payment-status transitions."""

    def __init__(self, db: Session, slot_service: Optional[SlotService] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.slot_service = slot_service or SlotService(db)

    @BaseService.measure_operation("bookings.create")
    def create(
        self, details: BookingDetails, amount: Decimal, currency: Optional[str] = None
    ) -> Booking:
        with self.transaction():
            booking = self.repository.create(
                first_name=details.first_name,
                last_name=details.last_name,
                email=details.email,
                phone=details.phone,
                booking_date=details.booking_date,
                booking_time=details.booking_time,
                duration=details.duration,
                location=details.location,
                group_size=details.group_size,
                service_id=details.service_id,
                user_id=details.user_id,
                amount=amount,
                currency=currency or settings.stripe_currency,
                payment_status=BookingPaymentStatus.PENDING.value,
            )
        self.logger.info(
            f"Created booking {booking.id} for {details.booking_date} {details.booking_time}"
        )
        return booking

    @BaseService.measure_operation("bookings.get")
    def get(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundException(booking_id=booking_id)
        return booking

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Booking]:
        return self.repository.get_by_payment_intent(payment_intent_id)

    @BaseService.measure_operation("bookings.attach_payment_intent")
    def attach_payment_intent(self, booking_id: str, payment_intent_id: str) -> Booking:
        """
        Bind a payment intent to a booking once.

        Re-attaching the same id is a no-op; a different id raises
        PaymentIntentAlreadyAttachedException.
        """
        with self.transaction():
            attached = self.repository.attach_payment_intent(booking_id, payment_intent_id)
        booking = self.reload(booking_id)
        if booking is None:
            raise BookingNotFoundException(booking_id=booking_id)
        if not attached and booking.payment_intent_id != payment_intent_id:
            raise PaymentIntentAlreadyAttachedException(
                booking_id, booking.payment_intent_id, payment_intent_id
            )
        return booking

    @BaseService.measure_operation("bookings.mark_completed")
    def mark_completed(self, payment_intent_id: str) -> bool:
        """Returns True only for the call that moved the booking out of pending."""
        return self._transition(payment_intent_id, BookingPaymentStatus.COMPLETED)

    @BaseService.measure_operation("bookings.mark_failed")
    def mark_failed(self, payment_intent_id: str) -> bool:
        return self._transition(payment_intent_id, BookingPaymentStatus.FAILED)

    @BaseService.measure_operation("bookings.cancel")
    def cancel(self, booking_id: str) -> bool:
        """
        Fail a pending booking and give its seat back.

        The seat is released only by the call that performed the transition,
        so repeated cancels release once and a cancel that loses to a payment
        success releases nothing.
        """
        with self.transaction():
            cancelled = self.repository.transition_by_id(
                booking_id, BookingPaymentStatus.FAILED, cancelled=True
            )
        booking = self.reload(booking_id)
        if booking is None:
            raise BookingNotFoundException(booking_id=booking_id)
        if not cancelled:
            self.logger.info(
                f"Cancel of booking {booking_id} ignored, status is {booking.payment_status}"
            )
            return False
        self.slot_service.release(booking.booking_date, booking.booking_time)
        self.logger.info(f"Cancelled booking {booking_id}")
        return True

    def _transition(self, payment_intent_id: str, target: BookingPaymentStatus) -> bool:
        with self.transaction():
            changed = self.repository.transition_by_payment_intent(payment_intent_id, target)
            exists = changed or self.repository.get_by_payment_intent(payment_intent_id)
        if not exists:
            raise BookingNotFoundException(payment_intent_id=payment_intent_id)
        if changed:
            self.db.expire_all()
            self.logger.info(f"Booking for intent {payment_intent_id} is now {target.value}")
        return changed

    def reload(self, booking_id: str) -> Optional[Booking]:
        """Fetch a booking fresh from the database; conditional updates bypass the identity map."""
        self.db.expire_all()
        return self.repository.get_by_id(booking_id)
