"""
Database models for the booking platform.

- ScheduleSlot: finite-capacity chamber time slots
- Booking: checkout attempts and their payment status
- CreditPackage: per-user append-only session-credit ledger
- WebhookEvent: ledger of verified payment-gateway events
"""

from .booking import Booking
from .credit import CreditPackage
from .schedule_slot import ScheduleSlot
from .webhook_event import WebhookEvent

__all__ = [
    "Booking",
    "CreditPackage",
    "ScheduleSlot",
    "WebhookEvent",
]
