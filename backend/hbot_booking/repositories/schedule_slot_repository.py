# backend/hbot_booking/repositories/schedule_slot_repository.py
"""
Schedule slot repository.

Seat counts move only through ``decrement_seat`` and ``increment_seat``. Both
are single conditional UPDATE statements, so two workers racing for the last
seat cannot both see a positive count: the database serialises the writes and
the loser's UPDATE matches zero rows.
"""

from datetime import date, datetime
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.schedule_slot import ScheduleSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

TIME_LABEL_FORMAT = "%I:%M %p"


def time_label_sort_key(label: str) -> tuple[int, str]:
    """Order "9:00 AM" before "10:00 AM"; unparseable labels sort last, alphabetically."""
    try:
        parsed = datetime.strptime(label.strip().upper(), TIME_LABEL_FORMAT)
    except ValueError:
        return (24 * 60, label)
    return (parsed.hour * 60 + parsed.minute, label)


class ScheduleSlotRepository(BaseRepository[ScheduleSlot]):
    """Data access for chamber schedule slots."""

    def __init__(self, db: Session):
        super().__init__(db, ScheduleSlot)

    def get_slot(self, slot_date: date, slot_time: str) -> Optional[ScheduleSlot]:
        return self.find_one_by(slot_date=slot_date, slot_time=slot_time)

    def list_for_date(self, slot_date: date) -> List[ScheduleSlot]:
        slots = self._execute_query(self._build_query().filter(ScheduleSlot.slot_date == slot_date))
        return sorted(slots, key=lambda slot: time_label_sort_key(slot.slot_time))

    def list_available_times(self, slot_date: date) -> List[str]:
        """Time labels on ``slot_date`` that still have at least one seat."""
        try:
            rows = (
                self.db.query(ScheduleSlot.slot_time)
                .filter(ScheduleSlot.slot_date == slot_date, ScheduleSlot.seats_available > 0)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing available slots for {slot_date}: {str(e)}")
            raise RepositoryException(f"Failed to list available slots: {str(e)}") from e
        return sorted((row[0] for row in rows), key=time_label_sort_key)

    def decrement_seat(self, slot_date: date, slot_time: str) -> bool:
        """Take one seat if any is left. Returns False when nothing matched."""
        statement = (
            update(ScheduleSlot)
            .where(
                ScheduleSlot.slot_date == slot_date,
                ScheduleSlot.slot_time == slot_time,
                ScheduleSlot.seats_available > 0,
            )
            .values(seats_available=ScheduleSlot.seats_available - 1)
        )
        return self._execute_update(statement) == 1

    def increment_seat(self, slot_date: date, slot_time: str) -> bool:
        """Give one seat back, never above ``seats_total``."""
        statement = (
            update(ScheduleSlot)
            .where(
                ScheduleSlot.slot_date == slot_date,
                ScheduleSlot.slot_time == slot_time,
                ScheduleSlot.seats_available < ScheduleSlot.seats_total,
            )
            .values(seats_available=ScheduleSlot.seats_available + 1)
        )
        return self._execute_update(statement) == 1

    def upsert(
        self, slot_date: date, slot_time: str, *, duration: int, seats_total: int
    ) -> ScheduleSlot:
        """Create or reset a slot; an existing slot gets all of its seats back."""
        existing = self.get_slot(slot_date, slot_time)
        if existing is None:
            return self.create(
                slot_date=slot_date,
                slot_time=slot_time,
                duration=duration,
                seats_total=seats_total,
                seats_available=seats_total,
            )
        existing.duration = duration
        existing.seats_total = seats_total
        existing.seats_available = seats_total
        self.flush()
        return existing
