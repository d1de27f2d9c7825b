# backend/hbot_booking/repositories/__init__.py
"""
Repository layer for data access.

Key Components:
- BaseRepository: generic CRUD plus conditional-update helpers
- RepositoryFactory: creates repository instances for services
- ScheduleSlotRepository: atomic seat reserve/release
- BookingRepository: booking ledger and payment-status transitions
- CreditRepository: append-only session-credit ledger
- WebhookEventRepository: verified gateway event ledger

Usage:
    from hbot_booking.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_by_payment_intent(intent_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .credit_repository import CreditRepository
from .factory import RepositoryFactory
from .schedule_slot_repository import ScheduleSlotRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CreditRepository",
    "RepositoryFactory",
    "ScheduleSlotRepository",
    "WebhookEventRepository",
]
