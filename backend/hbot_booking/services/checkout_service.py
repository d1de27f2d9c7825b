"""
Checkout orchestration.

quote -> reserve seat -> pending booking -> payment intent -> attach intent.
If anything after the reservation fails, the booking is failed and the seat
released before the error propagates.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MIN_CHARGE_CENTS
from ..core.exceptions import DomainException, RepositoryException, ValidationException
from ..models.booking import Booking
from .base import BaseService
from .booking_service import BookingDetails, BookingService
from .pricing_service import PriceQuote, PricingService, to_minor_units
from .slot_service import SlotService
from .stripe_service import PaymentIntentResult, StripeService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    booking: Booking
    quote: PriceQuote
    payment_intent: PaymentIntentResult


def build_intent_metadata(details: BookingDetails, quote: PriceQuote) -> Dict[str, str]:
    """Stripe metadata values must be strings."""
    return {
        "duration": str(details.duration),
        "groupSize": str(details.group_size),
        "location": details.location,
        "date": details.booking_date.isoformat(),
        "time": details.booking_time,
        "customerEmail": details.email,
        "customerName": f"{details.first_name} {details.last_name}".strip(),
        "serviceId": details.service_id or "",
        "userId": details.user_id or "",
        "isPromotionActive": str(quote.promotion_applied).lower(),
    }


class CheckoutService(BaseService):
    """Runs a checkout end to end for one booking request."""

    def __init__(
        self,
        db: Session,
        *,
        pricing_service: Optional[PricingService] = None,
        slot_service: Optional[SlotService] = None,
        booking_service: Optional[BookingService] = None,
        stripe_service: Optional[StripeService] = None,
    ):
        super().__init__(db)
        self.pricing_service = pricing_service or PricingService(db)
        self.slot_service = slot_service or SlotService(db)
        self.booking_service = booking_service or BookingService(db, self.slot_service)
        self.stripe_service = stripe_service or StripeService(db)

    @BaseService.measure_operation("checkout.start")
    def start_checkout(self, details: BookingDetails) -> CheckoutResult:
        quote = self.pricing_service.quote(
            duration=details.duration,
            group_size=details.group_size,
            location=details.location,
            booking_date=details.booking_date,
        )
        amount_cents = to_minor_units(quote.amount)
        if amount_cents < MIN_CHARGE_CENTS:
            raise ValidationException(
                "Payment amount is too low. Minimum is $0.50.",
                code="AMOUNT_BELOW_MINIMUM",
                details={"amount_cents": amount_cents, "minimum_cents": MIN_CHARGE_CENTS},
            )

        self.slot_service.reserve(details.booking_date, details.booking_time)

        try:
            booking = self.booking_service.create(details, quote.amount, settings.stripe_currency)
        except (DomainException, RepositoryException):
            self.slot_service.release(details.booking_date, details.booking_time)
            raise

        try:
            intent = self.stripe_service.create_payment_intent(
                amount_cents,
                booking.currency,
                build_intent_metadata(details, quote),
                booking_id=booking.id,
            )
            booking = self.booking_service.attach_payment_intent(booking.id, intent.id)
        except (DomainException, RepositoryException) as exc:
            self.logger.error(f"Checkout for booking {booking.id} failed: {exc}")
            self.booking_service.cancel(booking.id)
            raise

        self.logger.info(
            f"Checkout started for booking {booking.id} with intent {intent.id} "
            f"({amount_cents} {booking.currency})"
        )
        return CheckoutResult(booking=booking, quote=quote, payment_intent=intent)
