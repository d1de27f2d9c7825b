"""
Admin V1 Routes - operator tooling for slots and reconciliation.

Endpoints:
    GET /slots/{date}                          → All slots for a date
    PUT /slots                                 → Create or reset a slot
    DELETE /slots/{date}/{time}                → Remove an unreferenced slot
    GET /reconciliation/missing-credits        → Paid bookings without their package
    POST /reconciliation/grant-missing-credits → Append the missing package
    GET /webhook-events                        → Webhook ledger
    POST /webhook-events/{id}/replay           → Re-run a stored event
"""

import asyncio
from dataclasses import asdict
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies.auth import require_admin
from ...api.dependencies.services import (
    get_reconciliation_service,
    get_slot_service,
    get_webhook_ledger_service,
)
from ...core.exceptions import DomainException
from ...schemas.credits import CreditPackageResponse
from ...schemas.payment_schemas import (
    GrantMissingCreditsRequest,
    MissingCreditGrant,
    MissingCreditGrantsResponse,
    ReconciliationOutcomeResponse,
    WebhookEventResponse,
)
from ...schemas.slots import ScheduleSlotResponse, ScheduleSlotUpsert
from ...services.reconciliation_service import ReconciliationService
from ...services.slot_service import SlotService
from ...services.webhook_ledger_service import WebhookLedgerService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/admin
router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/slots/{slot_date}", response_model=List[ScheduleSlotResponse])
async def list_slots(
    slot_date: date,
    slot_service: SlotService = Depends(get_slot_service),
) -> List[ScheduleSlotResponse]:
    slots = await asyncio.to_thread(slot_service.get_slots, slot_date)
    return [ScheduleSlotResponse.model_validate(slot) for slot in slots]


@router.put("/slots", response_model=ScheduleSlotResponse)
async def upsert_slot(
    payload: ScheduleSlotUpsert,
    slot_service: SlotService = Depends(get_slot_service),
) -> ScheduleSlotResponse:
    """Upserting resets available seats to the new total."""
    try:
        slot = await asyncio.to_thread(
            slot_service.upsert_slot,
            payload.date,
            payload.time,
            duration=payload.duration,
            seats_total=payload.seats_total,
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return ScheduleSlotResponse.model_validate(slot)


@router.delete("/slots/{slot_date}/{slot_time}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_date: date,
    slot_time: str,
    slot_service: SlotService = Depends(get_slot_service),
) -> Response:
    try:
        await asyncio.to_thread(slot_service.delete_slot, slot_date, slot_time)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/reconciliation/missing-credits", response_model=MissingCreditGrantsResponse)
async def list_missing_credit_grants(
    limit: int = Query(100, ge=1, le=500),
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service),
) -> MissingCreditGrantsResponse:
    bookings = await asyncio.to_thread(reconciliation_service.find_missing_credit_grants, limit)
    return MissingCreditGrantsResponse(
        count=len(bookings),
        bookings=[MissingCreditGrant.model_validate(booking) for booking in bookings],
    )


@router.post("/reconciliation/grant-missing-credits", response_model=CreditPackageResponse)
async def grant_missing_credits(
    payload: GrantMissingCreditsRequest,
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service),
) -> CreditPackageResponse:
    try:
        package = await asyncio.to_thread(
            reconciliation_service.grant_missing_credits, payload.booking_id
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    logger.info(f"Operator granted missing credits for booking {payload.booking_id}")
    return CreditPackageResponse.model_validate(package)


@router.get("/webhook-events", response_model=List[WebhookEventResponse])
async def list_webhook_events(
    status_filter: Optional[str] = Query(None, alias="status"),
    event_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    ledger: WebhookLedgerService = Depends(get_webhook_ledger_service),
) -> List[WebhookEventResponse]:
    events = await asyncio.to_thread(
        ledger.list_events, status=status_filter, event_type=event_type, limit=limit
    )
    return [WebhookEventResponse.model_validate(event) for event in events]


@router.post(
    "/webhook-events/{webhook_event_id}/replay", response_model=ReconciliationOutcomeResponse
)
async def replay_webhook_event(
    webhook_event_id: str,
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationOutcomeResponse:
    try:
        outcome = await asyncio.to_thread(reconciliation_service.replay_event, webhook_event_id)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return ReconciliationOutcomeResponse(**asdict(outcome))
