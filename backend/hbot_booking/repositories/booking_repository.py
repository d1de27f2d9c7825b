# backend/hbot_booking/repositories/booking_repository.py
"""
Booking repository.

Payment-status transitions are conditional UPDATEs guarded by
``payment_status = 'pending'``; the affected-row count tells the caller
whether it performed the transition or lost to an earlier one.
"""

from datetime import date, datetime, timezone
import logging
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants.payment_status import BookingPaymentStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.credit import CreditPackage
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_TERMINAL_TIMESTAMP = {
    BookingPaymentStatus.COMPLETED: "completed_at",
    BookingPaymentStatus.FAILED: "failed_at",
}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookingRepository(BaseRepository[Booking]):
    """Data access for bookings and their payment status."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_by_payment_intent(self, payment_intent_id: str) -> Optional[Booking]:
        return self.find_one_by(payment_intent_id=payment_intent_id)

    def attach_payment_intent(self, booking_id: str, payment_intent_id: str) -> bool:
        """Set the intent id only while the column is still empty."""
        statement = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.payment_intent_id.is_(None))
            .values(payment_intent_id=payment_intent_id, updated_at=_now_utc())
        )
        return self._execute_update(statement) == 1

    def transition_by_payment_intent(
        self, payment_intent_id: str, target: BookingPaymentStatus
    ) -> bool:
        return self._transition(Booking.payment_intent_id == payment_intent_id, target)

    def transition_by_id(
        self, booking_id: str, target: BookingPaymentStatus, *, cancelled: bool = False
    ) -> bool:
        return self._transition(Booking.id == booking_id, target, cancelled=cancelled)

    def _transition(
        self, criterion, target: BookingPaymentStatus, *, cancelled: bool = False
    ) -> bool:
        now = _now_utc()
        values = {
            "payment_status": target.value,
            "updated_at": now,
            _TERMINAL_TIMESTAMP[target]: now,
        }
        if cancelled:
            values["cancelled_at"] = now
        statement = (
            update(Booking)
            .where(criterion, Booking.payment_status == BookingPaymentStatus.PENDING.value)
            .values(**values)
        )
        return self._execute_update(statement) == 1

    def count_for_slot(self, slot_date: date, slot_time: str) -> int:
        return self.count(booking_date=slot_date, booking_time=slot_time)

    def find_completed_without_credits(
        self, service_ids: Iterable[str], *, limit: int = 100
    ) -> List[Booking]:
        """
        Completed, user-owned bookings for credit-granting services that have
        no credit package pointing back at them.
        """
        ids = list(service_ids)
        if not ids:
            return []
        try:
            return (
                self.db.query(Booking)
                .outerjoin(CreditPackage, CreditPackage.source_booking_id == Booking.id)
                .filter(
                    Booking.payment_status == BookingPaymentStatus.COMPLETED.value,
                    Booking.service_id.in_(ids),
                    Booking.user_id.isnot(None),
                    CreditPackage.id.is_(None),
                )
                .order_by(Booking.completed_at.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error scanning for missing credit grants: {str(e)}")
            raise RepositoryException(f"Failed to scan bookings: {str(e)}") from e
