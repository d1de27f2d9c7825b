"""Pricing quote schemas."""

import datetime as dt
from typing import Union

from pydantic import Field

from .base import Money, StandardizedModel, StrictModel


class PriceQuoteRequest(StrictModel):
    # Numeric strings such as "3" are accepted, as the booking form sends them
    duration: Union[int, str] = Field(..., description="Session length in minutes")
    group_size: Union[int, str] = Field(1, description="Number of guests")
    location: str = Field(..., min_length=1, max_length=100)
    date: dt.date


class PriceQuoteResponse(StandardizedModel):
    amount: Money
    amount_cents: int
    currency: str
    base_price: Money
    multiplier: Money
    promotion_applied: bool
