# backend/hbot_booking/models/booking.py
"""
Booking model.

One row per checkout attempt. The row records who booked, which slot, the
amount charged and where the payment stands. Rows are never deleted;
cancellation and payment failure both end in the ``failed`` status.
"""

from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.sql import func
import ulid

from ..constants.payment_status import BookingPaymentStatus, is_terminal
from ..database import Base


class Booking(Base):
    """
    Record of intent for one hyperbaric session reservation.

    The payment status machine is pending -> completed | failed. Terminal
    rows are only touched again to stamp audit timestamps.
    """

    __tablename__ = "bookings"

    # Primary key
    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Contact details
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    # Slot reference (denormalised so bookings outlive slot edits)
    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(String(20), nullable=False)
    duration = Column(Integer, nullable=False)
    location = Column(String(100), nullable=False)
    group_size = Column(Integer, nullable=False, default=1)

    # Package purchased, if any, and the identity-provider user
    service_id = Column(String(100), nullable=True)
    user_id = Column(String(255), nullable=True, index=True)

    # Pricing snapshot
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")

    # Payment
    payment_intent_id = Column(String(255), nullable=True, unique=True)
    payment_status = Column(
        String(20), nullable=False, default=BookingPaymentStatus.PENDING.value, index=True
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_bookings_slot", "booking_date", "booking_time"),
        CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("duration > 0", name="check_duration_positive"),
        CheckConstraint("group_size > 0", name="check_group_size_positive"),
        CheckConstraint("amount >= 0", name="check_amount_non_negative"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.payment_status:
            self.payment_status = BookingPaymentStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: {self.booking_date} {self.booking_time}, "
            f"duration={self.duration}, status={self.payment_status}>"
        )

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.payment_status)

    @property
    def is_guest(self) -> bool:
        return not self.user_id
