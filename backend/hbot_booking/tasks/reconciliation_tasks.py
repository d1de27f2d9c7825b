"""
Celery tasks for payment reconciliation.

The sweep only reports. Paid bookings whose credit package is missing are
logged and, when any exist, summarized to the operator; the repair itself is
the admin grant-missing-credits action.
"""

from datetime import datetime, timezone
from html import escape
import logging
from typing import Any, List, TypedDict

from sqlalchemy.orm import Session

from hbot_booking.core.config import settings
from hbot_booking.core.constants import BRAND_NAME
from hbot_booking.database import SessionLocal
from hbot_booking.services.notification_service import build_email_sender
from hbot_booking.services.reconciliation_service import ReconciliationService
from hbot_booking.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


class SweepResults(TypedDict):
    missing: int
    booking_ids: List[str]
    notified: bool
    processed_at: str


def run_missing_credit_sweep(db: Session, limit: int = 100) -> SweepResults:
    service = ReconciliationService(db)
    bookings = service.find_missing_credit_grants(limit=limit)
    booking_ids = [booking.id for booking in bookings]
    for booking in bookings:
        logger.warning(
            f"Booking {booking.id} (user {booking.user_id}, service {booking.service_id}) "
            f"completed at {booking.completed_at} has no credit package"
        )

    notified = False
    if booking_ids and settings.email_enabled:
        rows = "".join(f"<li>{escape(booking_id)}</li>" for booking_id in booking_ids)
        try:
            build_email_sender(db).send_email(
                settings.admin_email,
                f"[{BRAND_NAME}] {len(booking_ids)} booking(s) missing session credits",
                f"<p>Paid bookings without their credit package:</p><ul>{rows}</ul>",
            )
            notified = True
        except Exception as exc:
            logger.error(f"Failed to send missing-credit sweep summary: {exc}")

    return SweepResults(
        missing=len(booking_ids),
        booking_ids=booking_ids,
        notified=notified,
        processed_at=datetime.now(timezone.utc).isoformat(),
    )


@celery_app.task(
    bind=True,
    max_retries=3,
    name="hbot_booking.tasks.reconciliation_tasks.sweep_missing_credit_grants",
)
def sweep_missing_credit_grants(self: Any, limit: int = 100) -> SweepResults:
    db: Session = SessionLocal()
    try:
        results = run_missing_credit_sweep(db, limit=limit)
        logger.info(f"Missing credit sweep found {results['missing']} booking(s)")
        return results
    finally:
        db.close()
