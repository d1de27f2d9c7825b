# backend/hbot_booking/repositories/factory.py
"""
Repository Factory for the booking platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .credit_repository import CreditRepository
    from .schedule_slot_repository import ScheduleSlotRepository
    from .webhook_event_repository import WebhookEventRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_schedule_slot_repository(db: Session) -> "ScheduleSlotRepository":
        """Create repository for slot capacity operations."""
        from .schedule_slot_repository import ScheduleSlotRepository

        return ScheduleSlotRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking ledger operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_credit_repository(db: Session) -> "CreditRepository":
        """Create repository for the session-credit ledger."""
        from .credit_repository import CreditRepository

        return CreditRepository(db)

    @staticmethod
    def create_webhook_event_repository(db: Session) -> "WebhookEventRepository":
        """Create repository for the webhook event ledger."""
        from .webhook_event_repository import WebhookEventRepository

        return WebhookEventRepository(db)
