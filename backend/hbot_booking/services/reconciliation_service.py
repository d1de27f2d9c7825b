# backend/hbot_booking/services/reconciliation_service.py
"""
Payment reconciliation.

Turns at-least-once Stripe webhook deliveries into exactly-once booking
transitions and credit grants:

1. The signature is verified before anything is written.
2. Every verified event is logged in the webhook ledger.
3. ``payment_intent.succeeded`` completes the booking with a conditional
   UPDATE and commits. Only the delivery that performed the transition goes
   on to grant credits, so redeliveries and concurrent deliveries are no-ops.
4. Any failure after the booking committed, while credits are still owed, is
   reported as an inconsistency (ERROR log, metric, ledger status, operator
   email) and acknowledged. It is never retried automatically; the sweep
   lists these bookings and an operator repairs them with
   ``grant_missing_credits``.

A failure before the booking transition commits raises
UpstreamServiceException so the route answers 503 and Stripe redelivers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants.credit_rules import credit_granting_service_ids, get_credit_allocation_rule
from ..constants.payment_status import BookingPaymentStatus, StripeEventType, WebhookEventStatus
from ..core.constants import WEBHOOK_SOURCE_STRIPE
from ..core.exceptions import (
    BookingNotFoundException,
    ConflictException,
    DomainException,
    InconsistentStateException,
    NotFoundException,
    RepositoryException,
    ServiceException,
    UpstreamServiceException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.credit import CreditPackage
from ..models.webhook_event import WebhookEvent
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import BookingService
from .credit_service import CreditService
from .notification_service import NotificationService
from .stripe_service import StripeService
from .webhook_ledger_service import WebhookLedgerService

logger = logging.getLogger(__name__)

_STORE_ERRORS = (RepositoryException, ServiceException, SQLAlchemyError)
_GRANT_ERRORS = (DomainException,) + _STORE_ERRORS


class Outcome(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True)
class ReconciliationOutcome:
    status: str
    event_type: str
    event_id: Optional[str] = None
    webhook_event_id: Optional[str] = None
    booking_id: Optional[str] = None
    credit_package_id: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class _Delivery:
    """Ledger row plus the column values read while the session was healthy."""

    record: WebhookEvent
    webhook_event_id: str
    event_id: Optional[str]
    event_type: str
    prior_status: str

    @classmethod
    def of(cls, record: WebhookEvent) -> "_Delivery":
        return cls(
            record=record,
            webhook_event_id=record.id,
            event_id=record.event_id,
            event_type=record.event_type,
            prior_status=record.status,
        )


@dataclass(frozen=True)
class _BookingRef:
    id: str
    user_id: Optional[str]
    service_id: Optional[str]

    @classmethod
    def of(cls, booking: Booking) -> "_BookingRef":
        return cls(id=booking.id, user_id=booking.user_id, service_id=booking.service_id)

    @property
    def owes_credits(self) -> bool:
        return bool(self.user_id) and get_credit_allocation_rule(self.service_id) is not None


def _intent_id(event: Dict[str, Any]) -> Optional[str]:
    data_object = (event.get("data") or {}).get("object") or {}
    intent_id = data_object.get("id")
    return str(intent_id) if intent_id else None


class ReconciliationService(BaseService):
    """Applies verified payment gateway events to bookings and credit ledgers."""

    def __init__(
        self,
        db: Session,
        *,
        stripe_service: Optional[StripeService] = None,
        booking_service: Optional[BookingService] = None,
        credit_service: Optional[CreditService] = None,
        ledger: Optional[WebhookLedgerService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.stripe_service = stripe_service or StripeService(db)
        self.booking_service = booking_service or BookingService(db)
        self.credit_service = credit_service or CreditService(db)
        self.ledger = ledger or WebhookLedgerService(db)
        self.notifications = notifications or NotificationService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    # ------------------------------------------------------------------ #
    # Webhook entry points
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("reconciliation.handle_gateway_event")
    def handle_gateway_event(
        self, payload: bytes, signature: Optional[str]
    ) -> ReconciliationOutcome:
        """
        Verify and apply one webhook delivery.

        Raises:
            WebhookAuthenticationException: signature check failed, nothing recorded
            UpstreamServiceException: the database was unavailable; Stripe should retry
        """
        event = self.stripe_service.construct_event(payload, signature)
        return self.handle_verified_event(event)

    @BaseService.measure_operation("reconciliation.handle_verified_event")
    def handle_verified_event(self, event: Dict[str, Any]) -> ReconciliationOutcome:
        started = time.monotonic()
        event_type = str(event.get("type") or "unknown")
        event_id = event.get("id")
        try:
            with self.transaction():
                record = self.ledger.log_received(
                    source=WEBHOOK_SOURCE_STRIPE,
                    event_type=event_type,
                    payload=event,
                    event_id=event_id,
                )
        except _STORE_ERRORS as exc:
            self.logger.error(f"Could not log webhook event {event_id}: {exc}")
            raise UpstreamServiceException("Webhook ledger unavailable") from exc
        return self._process(record, event, started)

    @BaseService.measure_operation("reconciliation.replay_event")
    def replay_event(self, webhook_event_id: str) -> ReconciliationOutcome:
        """Re-run a stored, previously verified event."""
        record = self.ledger.get_event(webhook_event_id)
        if record is None:
            raise NotFoundException(
                f"Webhook event {webhook_event_id} not found",
                code="WEBHOOK_EVENT_NOT_FOUND",
                details={"webhook_event_id": webhook_event_id},
            )
        self.logger.info(f"Replaying webhook event {record.event_id} ({record.event_type})")
        return self._process(record, dict(record.payload or {}), time.monotonic())

    def _process(
        self, record: WebhookEvent, event: Dict[str, Any], started: float
    ) -> ReconciliationOutcome:
        delivery = _Delivery.of(record)
        event_type = str(event.get("type") or "unknown")
        intent_id = _intent_id(event)

        if event_type not in (StripeEventType.PAYMENT_SUCCEEDED, StripeEventType.PAYMENT_FAILED):
            self.logger.info(f"Unhandled webhook event type: {event_type}")
            return self._finish(delivery, Outcome.IGNORED, started, message="Unhandled event type")

        if not intent_id:
            self.logger.warning(f"Webhook {delivery.event_id} has no payment intent id")
            return self._finish(
                delivery, Outcome.IGNORED, started, message="Missing payment intent"
            )

        if event_type == StripeEventType.PAYMENT_SUCCEEDED:
            return self._payment_succeeded(delivery, intent_id, started)
        return self._payment_failed(delivery, intent_id, started)

    # ------------------------------------------------------------------ #
    # Event handlers
    # ------------------------------------------------------------------ #

    def _payment_succeeded(
        self, delivery: _Delivery, intent_id: str, started: float
    ) -> ReconciliationOutcome:
        try:
            booking = self.booking_service.find_by_payment_intent(intent_id)
            if booking is None:
                self.logger.warning(f"No booking for payment intent {intent_id}; ignoring")
                return self._finish(
                    delivery, Outcome.IGNORED, started, message="Unknown payment intent"
                )
            ref = _BookingRef.of(booking)
            if booking.payment_status == BookingPaymentStatus.COMPLETED.value:
                return self._finish(
                    delivery,
                    Outcome.DUPLICATE,
                    started,
                    booking_id=ref.id,
                    message="Already completed",
                )
            if booking.payment_status == BookingPaymentStatus.FAILED.value:
                self.logger.warning(
                    f"Succeeded event for failed booking {ref.id}; terminal state kept"
                )
                return self._finish(
                    delivery,
                    Outcome.IGNORED,
                    started,
                    booking_id=ref.id,
                    message="Booking is failed",
                )
            transitioned = self.booking_service.mark_completed(intent_id)
        except BookingNotFoundException:
            return self._finish(
                delivery, Outcome.IGNORED, started, message="Unknown payment intent"
            )
        except _STORE_ERRORS as exc:
            self._fail(delivery, started, str(exc))
            raise UpstreamServiceException(
                "Booking store unavailable", details={"payment_intent_id": intent_id}
            ) from exc

        if not transitioned:
            # Another delivery completed (or failed) the booking first.
            return self._finish(
                delivery,
                Outcome.DUPLICATE,
                started,
                booking_id=ref.id,
                message="Lost transition race",
            )

        # The completed status is committed; from here a failure cannot be retried.
        package: Optional[CreditPackage] = None
        try:
            booking = self.booking_service.reload(ref.id)
            if booking is None:
                raise BookingNotFoundException(booking_id=ref.id)
            package = self.credit_service.grant_for_booking(booking, source="webhook")
        except _GRANT_ERRORS as exc:
            self._rollback()
            if not ref.owes_credits:
                self.logger.error(f"Booking {ref.id} completed but could not be reloaded: {exc}")
                return self._finish(delivery, Outcome.PROCESSED, started, booking_id=ref.id)
            return self._inconsistent(delivery, ref, started, str(exc))

        self._notify(self.notifications.booking_confirmed, booking)
        if package is not None:
            self._notify(self.notifications.credits_granted, booking, package)
        return self._finish(
            delivery,
            Outcome.PROCESSED,
            started,
            booking_id=ref.id,
            credit_package_id=package.id if package is not None else None,
        )

    def _payment_failed(
        self, delivery: _Delivery, intent_id: str, started: float
    ) -> ReconciliationOutcome:
        try:
            booking = self.booking_service.find_by_payment_intent(intent_id)
            if booking is None:
                raise BookingNotFoundException(payment_intent_id=intent_id)
            booking_id = booking.id
            transitioned = self.booking_service.mark_failed(intent_id)
        except BookingNotFoundException:
            self.logger.warning(f"No booking for failed payment intent {intent_id}; ignoring")
            return self._finish(
                delivery, Outcome.IGNORED, started, message="Unknown payment intent"
            )
        except _STORE_ERRORS as exc:
            self._fail(delivery, started, str(exc))
            raise UpstreamServiceException(
                "Booking store unavailable", details={"payment_intent_id": intent_id}
            ) from exc

        if not transitioned:
            return self._finish(
                delivery,
                Outcome.DUPLICATE,
                started,
                booking_id=booking_id,
                message="Already terminal",
            )
        self._notify(self.notifications.payment_failed, booking)
        return self._finish(delivery, Outcome.PROCESSED, started, booking_id=booking_id)

    # ------------------------------------------------------------------ #
    # Ledger bookkeeping
    # ------------------------------------------------------------------ #

    def _finish(
        self,
        delivery: _Delivery,
        outcome: Outcome,
        started: float,
        *,
        booking_id: Optional[str] = None,
        credit_package_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> ReconciliationOutcome:
        if delivery.prior_status == WebhookEventStatus.INCONSISTENT:
            # Only grant_missing_credits clears an inconsistent row.
            self.logger.warning(
                f"Webhook {delivery.event_id} stays inconsistent ({outcome.value} on reapply)"
            )
        else:
            ledger_status = (
                WebhookEventStatus.IGNORED
                if outcome == Outcome.IGNORED
                else WebhookEventStatus.PROCESSED
            )
            try:
                with self.transaction():
                    self.ledger.mark_processed(
                        delivery.record,
                        related_entity_type="booking" if booking_id else None,
                        related_entity_id=booking_id,
                        duration_ms=self.ledger.elapsed_ms(started),
                        status=ledger_status,
                    )
            except _STORE_ERRORS as exc:
                self.logger.error(
                    f"Could not update webhook ledger for {delivery.event_id}: {exc}"
                )
        prometheus_metrics.record_webhook_event(delivery.event_type, outcome.value)
        return ReconciliationOutcome(
            status=outcome.value,
            event_type=delivery.event_type,
            event_id=delivery.event_id,
            webhook_event_id=delivery.webhook_event_id,
            booking_id=booking_id,
            credit_package_id=credit_package_id,
            message=message,
        )

    def _fail(self, delivery: _Delivery, started: float, error: str) -> None:
        prometheus_metrics.record_webhook_event(delivery.event_type, "failed")
        try:
            with self.transaction():
                self.ledger.mark_failed(
                    delivery.record, error=error, duration_ms=self.ledger.elapsed_ms(started)
                )
        except _STORE_ERRORS as exc:
            self.logger.error(f"Could not record webhook failure for {delivery.event_id}: {exc}")

    def _inconsistent(
        self, delivery: _Delivery, ref: _BookingRef, started: float, reason: str
    ) -> ReconciliationOutcome:
        error = InconsistentStateException(ref.id, reason)
        self.logger.error(error.message, extra={"booking_id": ref.id, "code": error.code})
        prometheus_metrics.record_credit_inconsistency()
        prometheus_metrics.record_webhook_event(delivery.event_type, Outcome.INCONSISTENT.value)
        try:
            with self.transaction():
                self.ledger.mark_failed(
                    delivery.record,
                    error=error.message,
                    duration_ms=self.ledger.elapsed_ms(started),
                    status=WebhookEventStatus.INCONSISTENT,
                    related_entity_id=ref.id,
                )
        except _STORE_ERRORS as exc:
            self.logger.error(f"Could not mark webhook {delivery.event_id} inconsistent: {exc}")
        self._notify(
            self.notifications.credit_grant_inconsistent,
            ref.id,
            reason,
            user_id=ref.user_id,
            service_id=ref.service_id,
        )
        try:
            booking = self.booking_service.reload(ref.id)
        except _STORE_ERRORS as exc:
            self.logger.error(f"Skipping confirmation for booking {ref.id}: {exc}")
            booking = None
        if booking is not None:
            self._notify(self.notifications.booking_confirmed, booking)
        return ReconciliationOutcome(
            status=Outcome.INCONSISTENT.value,
            event_type=delivery.event_type,
            event_id=delivery.event_id,
            webhook_event_id=delivery.webhook_event_id,
            booking_id=ref.id,
            message=error.message,
        )

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as exc:
            self.logger.error(f"Rollback after failed credit grant failed: {exc}")

    def _notify(self, send: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Notifications read booking columns; a store error there is logged only."""
        try:
            send(*args, **kwargs)
        except _STORE_ERRORS as exc:
            name = getattr(send, "__name__", "notification")
            self.logger.error(f"Skipped {name} notification: {exc}")

    # ------------------------------------------------------------------ #
    # Sweep and repair
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("reconciliation.find_missing_credit_grants")
    def find_missing_credit_grants(self, limit: int = 100) -> List[Booking]:
        """Completed credit-granting bookings with a user and no credit package."""
        return self.booking_repository.find_completed_without_credits(
            credit_granting_service_ids(), limit=limit
        )

    @BaseService.measure_operation("reconciliation.grant_missing_credits")
    def grant_missing_credits(self, booking_id: str) -> CreditPackage:
        """
        Operator repair for one booking found by the sweep.

        Idempotent: a booking that already has its package gets that package
        back. Inconsistent ledger rows for the booking are marked processed.
        """
        booking = self.booking_service.get(booking_id)
        if booking.payment_status != BookingPaymentStatus.COMPLETED.value:
            raise ConflictException(
                f"Booking {booking_id} is {booking.payment_status}, not completed",
                code="BOOKING_NOT_COMPLETED",
                details={"booking_id": booking_id, "payment_status": booking.payment_status},
            )
        if not _BookingRef.of(booking).owes_credits:
            raise ValidationException(
                f"Booking {booking_id} is not eligible for credits",
                code="BOOKING_NOT_CREDIT_ELIGIBLE",
                details={"booking_id": booking_id, "service_id": booking.service_id},
            )

        package = self.credit_service.existing_grant(booking_id)
        if package is None:
            package = self.credit_service.grant_for_booking(booking, source="repair")
            if package is None:  # pragma: no cover - eligibility checked above
                raise ValidationException(f"Booking {booking_id} is not eligible for credits")
            self.log_operation(
                "grant_missing_credits", booking_id=booking_id, package_id=package.id
            )
            self._notify(self.notifications.credits_granted, booking, package)

        with self.transaction():
            resolved = self.ledger.resolve_inconsistent(booking_id)
        if resolved:
            self.logger.info(f"Resolved {resolved} inconsistent webhook event(s) for {booking_id}")
        return package
