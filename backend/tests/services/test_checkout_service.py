from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from hbot_booking.constants.pricing_defaults import PromotionWindow
from hbot_booking.core.exceptions import (
    SlotExhaustedException,
    UpstreamServiceException,
    ValidationException,
)
from hbot_booking.models.booking import Booking
from hbot_booking.models.schedule_slot import ScheduleSlot
from hbot_booking.services.booking_service import BookingDetails
from hbot_booking.services.checkout_service import CheckoutService, build_intent_metadata
from hbot_booking.services.pricing_service import PricingService
from hbot_booking.services.stripe_service import StripeService
from tests.helpers import SLOT_DATE, SLOT_TIME


def _details(**overrides) -> BookingDetails:
    values = dict(
        first_name="Grace",
        last_name="Hopper",
        email="grace@example.com",
        booking_date=SLOT_DATE,
        booking_time=SLOT_TIME,
        duration=60,
        location="midtown",
        group_size=3,
        service_id="morris-12-week",
        user_id="user-1",
    )
    values.update(overrides)
    return BookingDetails(**values)


def _seats(db, slot) -> int:
    db.expire_all()
    return db.get(ScheduleSlot, slot.id).seats_available


def test_checkout_reserves_and_opens_intent(db, make_slot):
    slot = make_slot(seats_total=4)
    result = CheckoutService(db).start_checkout(_details())

    assert result.payment_intent.mock is True
    assert result.payment_intent.amount_cents == 38250
    assert result.booking.amount == Decimal("382.50")
    assert result.booking.payment_status == "pending"
    assert result.booking.payment_intent_id == f"mock_pi_{result.booking.id}"
    assert result.booking.user_id == "user-1"
    assert _seats(db, slot) == 3


def test_checkout_matches_quote(db, make_slot):
    make_slot()
    quote = PricingService(db).quote(
        duration=90, group_size=2, location="midtown", booking_date=SLOT_DATE
    )
    result = CheckoutService(db).start_checkout(_details(duration=90, group_size=2))
    assert result.booking.amount == quote.amount


def test_full_slot_creates_nothing(db, make_slot):
    make_slot(seats_total=1, seats_available=0)
    with pytest.raises(SlotExhaustedException):
        CheckoutService(db).start_checkout(_details())
    assert db.query(Booking).count() == 0


def test_gateway_failure_fails_booking_and_frees_seat(db, make_slot):
    slot = make_slot(seats_total=4)
    stripe_service = MagicMock(spec=StripeService)
    stripe_service.create_payment_intent.side_effect = UpstreamServiceException(
        "Failed to create payment intent"
    )

    with pytest.raises(UpstreamServiceException):
        CheckoutService(db, stripe_service=stripe_service).start_checkout(_details())

    db.expire_all()
    booking = db.query(Booking).one()
    assert booking.payment_status == "failed"
    assert booking.cancelled_at is not None
    assert _seats(db, slot) == 4


def test_amount_below_minimum_rejected_before_reserving(db, make_slot):
    slot = make_slot(seats_total=4)
    free_promo = PromotionWindow(
        location="midtown",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        prices={20: Decimal("0")},
    )
    service = CheckoutService(db, pricing_service=PricingService(db, promotion=free_promo))

    with pytest.raises(ValidationException) as exc_info:
        service.start_checkout(_details(duration=20, group_size=1))
    assert exc_info.value.code == "AMOUNT_BELOW_MINIMUM"
    assert _seats(db, slot) == 4


def test_intent_metadata_values_are_strings():
    details = _details(service_id=None, user_id=None)
    quote = MagicMock(promotion_applied=False)
    metadata = build_intent_metadata(details, quote)
    assert metadata["groupSize"] == "3"
    assert metadata["date"] == "2025-11-03"
    assert metadata["customerName"] == "Grace Hopper"
    assert metadata["serviceId"] == ""
    assert metadata["isPromotionActive"] == "false"
    assert all(isinstance(value, str) for value in metadata.values())
