# backend/hbot_booking/services/notification_service.py
"""
Customer and operator notifications sent after booking state changes.

A notification is never part of the state change it reports: every send is
attempted after the commit, and a failed send is logged and counted only.
"""

from __future__ import annotations

from html import escape
import logging
from typing import Any, Optional, Protocol

from sqlalchemy.orm import Session

from ..constants.credit_rules import CREDIT_TYPE_DISPLAY_NAMES
from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..models.booking import Booking
from ..models.credit import CreditPackage
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .email_console import ConsoleEmailService

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Any:
        ...


def build_email_sender(db: Session) -> EmailSender:
    if settings.email_provider == "resend" and settings.resend_api_key:
        from .email import EmailService

        return EmailService(db)
    return ConsoleEmailService()


class NotificationService(BaseService):
    """Sends booking confirmation, failure and credit emails."""

    def __init__(self, db: Session, sender: Optional[EmailSender] = None):
        super().__init__(db)
        self._sender = sender

    @property
    def sender(self) -> EmailSender:
        if self._sender is None:
            self._sender = build_email_sender(self.db)
        return self._sender

    def _send(self, kind: str, to_email: Optional[str], subject: str, html: str) -> bool:
        if not settings.email_enabled:
            self.logger.debug(f"Email disabled, skipping {kind} notification")
            return False
        if not to_email:
            self.logger.warning(f"No recipient for {kind} notification")
            return False
        try:
            self.sender.send_email(to_email, subject, html)
        except Exception as exc:
            prometheus_metrics.record_notification(kind, "error")
            self.logger.error(f"Failed to send {kind} notification to {to_email}: {exc}")
            return False
        prometheus_metrics.record_notification(kind, "sent")
        return True

    @BaseService.measure_operation("notifications.booking_confirmed")
    def booking_confirmed(self, booking: Booking) -> bool:
        html = (
            f"<p>Hi {escape(booking.first_name or '')},</p>"
            f"<p>Your {booking.duration}-minute hyperbaric session at {escape(booking.location)} "
            f"on {booking.booking_date} at {escape(booking.booking_time)} is confirmed.</p>"
            f"<p>Amount paid: ${booking.amount} {booking.currency.upper()}</p>"
            f"<p>{BRAND_NAME}</p>"
        )
        return self._send("booking_confirmed", booking.email, f"{BRAND_NAME} booking confirmed", html)

    @BaseService.measure_operation("notifications.payment_failed")
    def payment_failed(self, booking: Booking) -> bool:
        html = (
            f"<p>Hi {escape(booking.first_name or '')},</p>"
            f"<p>We could not process the payment for your session on "
            f"{booking.booking_date} at {escape(booking.booking_time)}. "
            f"Please try booking again.</p>"
        )
        return self._send("payment_failed", booking.email, f"{BRAND_NAME} payment issue", html)

    @BaseService.measure_operation("notifications.credits_granted")
    def credits_granted(self, booking: Booking, package: CreditPackage) -> bool:
        credit_label = CREDIT_TYPE_DISPLAY_NAMES.get(package.credit_type, package.credit_type)
        expiry = package.expires_at.date().isoformat() if package.expires_at else "never"
        html = (
            f"<p>Hi {escape(booking.first_name or '')},</p>"
            f"<p>{package.original_balance} {escape(credit_label)} sessions from "
            f"{escape(package.package_name)} are now on your account.</p>"
            f"<p>They expire: {expiry}</p>"
        )
        return self._send("credits_granted", booking.email, f"{BRAND_NAME} session credits", html)

    @BaseService.measure_operation("notifications.credit_grant_inconsistent")
    def credit_grant_inconsistent(
        self,
        booking_id: str,
        reason: str,
        *,
        user_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> bool:
        """
        Operator alert. Takes plain values so it can be sent while the
        booking row cannot be read.
        """
        html = (
            f"<p>Booking {escape(booking_id)} was paid but its credit package could not be added.</p>"
            f"<p>User: {escape(user_id or '')}; service: {escape(service_id or '')}</p>"
            f"<p>Reason: {escape(reason)}</p>"
            f"<p>Use the admin grant-missing-credits action once the cause is fixed.</p>"
        )
        return self._send(
            "credit_grant_inconsistent",
            settings.admin_email,
            f"[{BRAND_NAME}] credits missing for booking {booking_id}",
            html,
        )
