"""
Bookings V1 Routes - checkout and booking lookups.

Endpoints:
    POST /checkout               → Reserve a seat and open a payment intent
    GET /{booking_id}            → Booking details
    POST /{booking_id}/cancel    → Fail a pending booking and free its seat
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from ...api.dependencies.auth import get_optional_user_id
from ...api.dependencies.services import get_booking_service, get_checkout_service
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingResponse,
    CancelBookingResponse,
    CheckoutRequest,
    CheckoutResponse,
)
from ...services.booking_service import BookingDetails, BookingService
from ...services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/bookings
router = APIRouter(tags=["bookings-v1"])


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def start_checkout(
    payload: CheckoutRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """
    Start a checkout.

    The seat is held from this call until the payment settles or the booking
    is cancelled. Guests (no user header) can book but earn no credits.
    """
    details = BookingDetails(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=str(payload.email),
        phone=payload.phone,
        booking_date=payload.date,
        booking_time=payload.time,
        duration=int(payload.duration),
        location=payload.location,
        group_size=int(payload.group_size),
        service_id=payload.service_id,
        user_id=user_id,
    )
    try:
        result = await asyncio.to_thread(checkout_service.start_checkout, details)
    except DomainException as exc:
        raise exc.to_http_exception() from exc

    return CheckoutResponse(
        booking_id=result.booking.id,
        payment_intent_id=result.payment_intent.id,
        client_secret=result.payment_intent.client_secret,
        amount=result.quote.amount,
        amount_cents=result.payment_intent.amount_cents,
        currency=result.payment_intent.currency,
        promotion_applied=result.quote.promotion_applied,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get, booking_id)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=CancelBookingResponse)
async def cancel_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    """Cancelling a booking that already settled is a no-op reported as cancelled=false."""
    try:
        cancelled = await asyncio.to_thread(booking_service.cancel, booking_id)
        booking = await asyncio.to_thread(booking_service.get, booking_id)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return CancelBookingResponse(
        booking_id=booking.id, cancelled=cancelled, payment_status=booking.payment_status
    )
