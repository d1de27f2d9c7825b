"""Schedule slot schemas."""

import datetime as dt
from typing import List

from pydantic import Field

from .base import StandardizedModel, StrictModel


class AvailableSlotsResponse(StandardizedModel):
    date: dt.date
    times: List[str]


class ScheduleSlotUpsert(StrictModel):
    date: dt.date
    time: str = Field(..., min_length=1, max_length=20, description='Label such as "9:00 AM"')
    duration: int = Field(60, gt=0)
    seats_total: int = Field(4, ge=0)


class ScheduleSlotResponse(StandardizedModel):
    id: str
    date: dt.date = Field(validation_alias="slot_date")
    time: str = Field(validation_alias="slot_time")
    duration: int
    seats_total: int
    seats_available: int
