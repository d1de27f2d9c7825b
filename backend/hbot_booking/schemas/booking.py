"""Checkout and booking schemas."""

import datetime as dt
from datetime import datetime
from typing import Optional, Union

from pydantic import EmailStr, Field, field_validator

from .base import Money, StandardizedModel, StrictModel


class CheckoutRequest(StrictModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    date: dt.date
    time: str = Field(..., min_length=1, max_length=20)
    duration: Union[int, str]
    group_size: Union[int, str] = 1
    location: str = Field(..., min_length=1, max_length=100)
    service_id: Optional[str] = Field(None, max_length=100)

    @field_validator("duration", "group_size")
    @classmethod
    def _positive_whole_number(cls, value: Union[int, str]) -> int:
        try:
            number = int(str(value).strip())
        except ValueError:
            raise ValueError("must be a whole number")
        if number <= 0:
            raise ValueError("must be positive")
        return number


class CheckoutResponse(StandardizedModel):
    booking_id: str
    payment_intent_id: str
    client_secret: Optional[str] = None
    amount: Money
    amount_cents: int
    currency: str
    promotion_applied: bool


class BookingResponse(StandardizedModel):
    id: str
    first_name: str
    last_name: str
    email: str
    date: dt.date = Field(validation_alias="booking_date")
    time: str = Field(validation_alias="booking_time")
    duration: int
    location: str
    group_size: int
    service_id: Optional[str] = None
    user_id: Optional[str] = None
    amount: Money
    currency: str
    payment_intent_id: Optional[str] = None
    payment_status: str
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class CancelBookingResponse(StandardizedModel):
    booking_id: str
    cancelled: bool
    payment_status: str
