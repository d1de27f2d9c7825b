"""
Schedule V1 Routes - public seat availability.

Endpoints:
    GET /{date}/available    → Times with at least one open seat
"""

import asyncio
from datetime import date

from fastapi import APIRouter, Depends

from ...api.dependencies.services import get_slot_service
from ...schemas.slots import AvailableSlotsResponse
from ...services.slot_service import SlotService

# V1 router - mounted at /api/v1/schedule
router = APIRouter(tags=["schedule"])


@router.get("/{slot_date}/available", response_model=AvailableSlotsResponse)
async def get_available_times(
    slot_date: date,
    slot_service: SlotService = Depends(get_slot_service),
) -> AvailableSlotsResponse:
    available = slot_service.list_available(slot_date)
    times = await asyncio.to_thread(list, available)
    return AvailableSlotsResponse(date=slot_date, times=times)
