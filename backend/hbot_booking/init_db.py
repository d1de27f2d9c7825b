# backend/hbot_booking/init_db.py
"""Create all tables on the configured database (local development)."""

import logging

from hbot_booking.database import Base, engine
from hbot_booking.models import Booking, CreditPackage, ScheduleSlot, WebhookEvent  # noqa: F401

logger = logging.getLogger(__name__)


def init_db() -> None:
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
