"""Booking payment lifecycle values and the Stripe events that drive them."""

from __future__ import annotations

from enum import Enum


class BookingPaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {BookingPaymentStatus.COMPLETED.value, BookingPaymentStatus.FAILED.value}
)


class StripeEventType:
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"


class WebhookEventStatus:
    RECEIVED = "received"
    PROCESSED = "processed"
    IGNORED = "ignored"
    FAILED = "failed"
    INCONSISTENT = "inconsistent"


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_PAYMENT_STATUSES
