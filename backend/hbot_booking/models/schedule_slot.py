"""
Schedule slot model.

A slot is one chamber start time on one day with a fixed number of seats.
``seats_available`` is only ever changed by conditional UPDATEs in
ScheduleSlotRepository, never by assigning the attribute on a loaded row.
"""

from datetime import date, datetime
from typing import Optional

import ulid
from sqlalchemy import CheckConstraint, Date, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base

DEFAULT_SEATS_TOTAL = 4


class ScheduleSlot(Base):
    """Finite-capacity calendar entry, identified by (slot_date, slot_time)."""

    __tablename__ = "schedule_slots"

    __table_args__ = (
        UniqueConstraint("slot_date", "slot_time", name="uq_schedule_slots_date_time"),
        CheckConstraint("seats_total >= 0", name="ck_schedule_slots_seats_total"),
        CheckConstraint(
            "seats_available >= 0 AND seats_available <= seats_total",
            name="ck_schedule_slots_seats_available",
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    slot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    # Display label such as "9:00 AM"
    slot_time: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    seats_total: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_SEATS_TOTAL)
    seats_available: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_SEATS_TOTAL
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<ScheduleSlot({self.slot_date} {self.slot_time}, "
            f"{self.seats_available}/{self.seats_total})>"
        )
