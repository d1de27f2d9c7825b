"""
Payments V1 Routes - Stripe webhook intake.

Endpoints:
    POST /webhooks/stripe                → Handle Stripe webhooks

The endpoint has no authentication; the Stripe signature is the credential.
Status codes drive Stripe's retry behaviour: 400 for a bad signature (never
retried usefully), 503 when storage is down (retry), 2xx otherwise,
including events that were ignored or left inconsistent.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from ...api.dependencies.services import get_reconciliation_service
from ...core.exceptions import DomainException
from ...schemas.payment_schemas import WebhookResponse
from ...services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/payments
router = APIRouter(tags=["payments-v1"])


@router.post("/webhooks/stripe", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request,
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service),
) -> WebhookResponse:
    """Verify a Stripe delivery and apply it to the booking and credit ledgers."""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        outcome = await asyncio.to_thread(
            reconciliation_service.handle_gateway_event, payload, sig_header
        )
    except DomainException as exc:
        logger.warning(f"Webhook rejected ({exc.code}): {exc.message}")
        raise exc.to_http_exception() from exc

    return WebhookResponse(
        status=outcome.status,
        event_type=outcome.event_type,
        message=outcome.message,
    )
