# backend/hbot_booking/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a service on the request's session; composite services
receive their collaborators through the same session so one request stays
in one unit of work.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutService
from ...services.credit_service import CreditService
from ...services.notification_service import NotificationService
from ...services.pricing_service import PricingService
from ...services.reconciliation_service import ReconciliationService
from ...services.slot_service import SlotService
from ...services.stripe_service import StripeService
from ...services.webhook_ledger_service import WebhookLedgerService
from .database import get_db


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    return SlotService(db)


def get_booking_service(
    db: Session = Depends(get_db), slot_service: SlotService = Depends(get_slot_service)
) -> BookingService:
    return BookingService(db, slot_service)


def get_stripe_service(db: Session = Depends(get_db)) -> StripeService:
    return StripeService(db)


def get_credit_service(db: Session = Depends(get_db)) -> CreditService:
    return CreditService(db)


def get_webhook_ledger_service(db: Session = Depends(get_db)) -> WebhookLedgerService:
    return WebhookLedgerService(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_checkout_service(
    db: Session = Depends(get_db),
    pricing_service: PricingService = Depends(get_pricing_service),
    slot_service: SlotService = Depends(get_slot_service),
    booking_service: BookingService = Depends(get_booking_service),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> CheckoutService:
    """
    Get checkout service instance.

    Args:
        db: Database session
        pricing_service: Quote calculation
        slot_service: Seat reservation
        booking_service: Booking ledger
        stripe_service: Payment intent creation

    Returns:
        CheckoutService instance
    """
    return CheckoutService(
        db,
        pricing_service=pricing_service,
        slot_service=slot_service,
        booking_service=booking_service,
        stripe_service=stripe_service,
    )


def get_reconciliation_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
    booking_service: BookingService = Depends(get_booking_service),
    credit_service: CreditService = Depends(get_credit_service),
    ledger: WebhookLedgerService = Depends(get_webhook_ledger_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> ReconciliationService:
    return ReconciliationService(
        db,
        stripe_service=stripe_service,
        booking_service=booking_service,
        credit_service=credit_service,
        ledger=ledger,
        notifications=notifications,
    )
