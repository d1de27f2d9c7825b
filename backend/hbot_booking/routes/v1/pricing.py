"""V1 pricing quote endpoint."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies.services import get_pricing_service
from ...core.config import settings
from ...core.exceptions import DomainException
from ...schemas.pricing import PriceQuoteRequest, PriceQuoteResponse
from ...services.pricing_service import PricingService, to_minor_units

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/pricing
router = APIRouter(tags=["pricing"])


@router.post("/quote", response_model=PriceQuoteResponse)
async def quote_price(
    payload: PriceQuoteRequest,
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PriceQuoteResponse:
    """Price a session without reserving anything. Checkout charges the same amount."""
    try:
        quote = await asyncio.to_thread(
            pricing_service.quote,
            duration=payload.duration,
            group_size=payload.group_size,
            location=payload.location,
            booking_date=payload.date,
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc

    return PriceQuoteResponse(
        amount=quote.amount,
        amount_cents=to_minor_units(quote.amount),
        currency=settings.stripe_currency,
        base_price=quote.base_price,
        multiplier=quote.multiplier,
        promotion_applied=quote.promotion_applied,
    )
