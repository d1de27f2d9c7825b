# backend/hbot_booking/services/slot_service.py
"""
Slot allocation for chamber sessions.

Every seat change is one conditional UPDATE committed on its own, so
reservations stay correct across any number of API workers without locks.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Callable, Iterator, List

from sqlalchemy.orm import Session

from ..core.exceptions import SlotExhaustedException, SlotInUseException, SlotNotFoundException
from ..models.schedule_slot import DEFAULT_SEATS_TOTAL, ScheduleSlot
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailableTimes:
    """
    Time labels with free seats on one date.

    Nothing is queried until iteration starts, and every new iteration
    queries again, so a caller holding this object always sees current
    availability.
    """

    def __init__(self, slot_date: date, loader: Callable[[date], List[str]]):
        self.slot_date = slot_date
        self._loader = loader

    def __iter__(self) -> Iterator[str]:
        return iter(self._loader(self.slot_date))

    def __repr__(self) -> str:
        return f"<AvailableTimes {self.slot_date}>"


class SlotService(BaseService):
    """Reserve, release and administer schedule slots."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.slot_repository = RepositoryFactory.create_schedule_slot_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("slots.reserve")
    def reserve(self, slot_date: date, slot_time: str) -> None:
        """
        Take one seat.

        Raises:
            SlotNotFoundException: no slot exists for the date and time
            SlotExhaustedException: the slot has no seats left
        """
        # The UPDATE must be the first statement of the transaction.
        with self.transaction():
            reserved = self.slot_repository.decrement_seat(slot_date, slot_time)
            slot = None if reserved else self.slot_repository.get_slot(slot_date, slot_time)

        if reserved:
            prometheus_metrics.record_slot_reservation("reserved")
            self.logger.info(f"Reserved seat for {slot_date} {slot_time}")
            return
        if slot is None:
            prometheus_metrics.record_slot_reservation("not_found")
            raise SlotNotFoundException(slot_date.isoformat(), slot_time)
        prometheus_metrics.record_slot_reservation("exhausted")
        raise SlotExhaustedException(slot_date.isoformat(), slot_time)

    @BaseService.measure_operation("slots.release")
    def release(self, slot_date: date, slot_time: str) -> bool:
        """Return one seat. Returns False when the slot is already full or missing."""
        with self.transaction():
            released = self.slot_repository.increment_seat(slot_date, slot_time)
        if released:
            prometheus_metrics.record_slot_reservation("released")
        else:
            self.logger.warning(f"Release for {slot_date} {slot_time} changed nothing")
        return released

    def list_available(self, slot_date: date) -> AvailableTimes:
        return AvailableTimes(slot_date, self.slot_repository.list_available_times)

    @BaseService.measure_operation("slots.get_slots")
    def get_slots(self, slot_date: date) -> List[ScheduleSlot]:
        return self.slot_repository.list_for_date(slot_date)

    @BaseService.measure_operation("slots.upsert")
    def upsert_slot(
        self,
        slot_date: date,
        slot_time: str,
        *,
        duration: int = 60,
        seats_total: int = DEFAULT_SEATS_TOTAL,
    ) -> ScheduleSlot:
        with self.transaction():
            slot = self.slot_repository.upsert(
                slot_date, slot_time, duration=duration, seats_total=seats_total
            )
        self.log_operation("upsert_slot", slot_date=slot_date.isoformat(), slot_time=slot_time)
        return slot

    @BaseService.measure_operation("slots.delete")
    def delete_slot(self, slot_date: date, slot_time: str) -> None:
        slot = self.slot_repository.get_slot(slot_date, slot_time)
        if slot is None:
            raise SlotNotFoundException(slot_date.isoformat(), slot_time)
        booking_count = self.booking_repository.count_for_slot(slot_date, slot_time)
        if booking_count:
            raise SlotInUseException(slot_date.isoformat(), slot_time, booking_count)
        with self.transaction():
            self.slot_repository.delete(slot)
        self.log_operation("delete_slot", slot_date=slot_date.isoformat(), slot_time=slot_time)
