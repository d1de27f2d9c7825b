from decimal import Decimal

import pytest

from hbot_booking.core.exceptions import (
    BookingNotFoundException,
    PaymentIntentAlreadyAttachedException,
)
from hbot_booking.models.schedule_slot import ScheduleSlot
from hbot_booking.services.booking_service import BookingDetails, BookingService
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
        group_size=2,
    )
    values.update(overrides)
    return BookingDetails(**values)


def test_create_is_pending(db):
    booking = BookingService(db).create(_details(), Decimal("270.00"))
    assert booking.payment_status == "pending"
    assert booking.payment_intent_id is None
    assert booking.currency == "usd"
    assert booking.is_guest is True


class TestAttachPaymentIntent:
    def test_attach_once(self, db):
        service = BookingService(db)
        booking = service.create(_details(), Decimal("150"))
        attached = service.attach_payment_intent(booking.id, "pi_1")
        assert attached.payment_intent_id == "pi_1"
        assert service.find_by_payment_intent("pi_1").id == booking.id

    def test_same_intent_again_is_noop(self, db):
        service = BookingService(db)
        booking = service.create(_details(), Decimal("150"))
        service.attach_payment_intent(booking.id, "pi_1")
        again = service.attach_payment_intent(booking.id, "pi_1")
        assert again.payment_intent_id == "pi_1"

    def test_different_intent_rejected(self, db):
        service = BookingService(db)
        booking = service.create(_details(), Decimal("150"))
        service.attach_payment_intent(booking.id, "pi_1")
        with pytest.raises(PaymentIntentAlreadyAttachedException):
            service.attach_payment_intent(booking.id, "pi_2")
        assert service.reload(booking.id).payment_intent_id == "pi_1"

    def test_unknown_booking(self, db):
        with pytest.raises(BookingNotFoundException):
            BookingService(db).attach_payment_intent("missing", "pi_1")


class TestTransitions:
    def test_complete_once(self, db, make_booking):
        booking = make_booking(payment_intent_id="pi_ok")
        service = BookingService(db)

        assert service.mark_completed("pi_ok") is True
        assert service.mark_completed("pi_ok") is False

        stored = service.reload(booking.id)
        assert stored.payment_status == "completed"
        assert stored.completed_at is not None
        assert stored.failed_at is None

    def test_terminal_states_are_final(self, db, make_booking):
        completed = make_booking(payment_intent_id="pi_done", payment_status="completed")
        failed = make_booking(payment_intent_id="pi_dead", payment_status="failed")
        service = BookingService(db)

        assert service.mark_failed("pi_done") is False
        assert service.mark_completed("pi_dead") is False
        assert service.reload(completed.id).payment_status == "completed"
        assert service.reload(failed.id).payment_status == "failed"

    def test_fail_pending(self, db, make_booking):
        booking = make_booking(payment_intent_id="pi_fail")
        service = BookingService(db)
        assert service.mark_failed("pi_fail") is True
        stored = service.reload(booking.id)
        assert stored.payment_status == "failed"
        assert stored.failed_at is not None
        assert stored.cancelled_at is None

    def test_unknown_intent(self, db):
        with pytest.raises(BookingNotFoundException):
            BookingService(db).mark_completed("pi_missing")


class TestCancel:
    def test_cancel_releases_seat_once(self, db, make_slot, make_booking):
        slot = make_slot(seats_total=4, seats_available=3)
        booking = make_booking()
        service = BookingService(db)

        assert service.cancel(booking.id) is True
        assert service.cancel(booking.id) is False

        db.expire_all()
        assert db.get(ScheduleSlot, slot.id).seats_available == 4
        stored = service.reload(booking.id)
        assert stored.payment_status == "failed"
        assert stored.cancelled_at is not None

    def test_cancel_after_success_keeps_seat(self, db, make_slot, make_booking):
        slot = make_slot(seats_total=4, seats_available=3)
        booking = make_booking(payment_intent_id="pi_paid", payment_status="completed")

        assert BookingService(db).cancel(booking.id) is False
        db.expire_all()
        assert db.get(ScheduleSlot, slot.id).seats_available == 3

    def test_cancel_unknown_booking(self, db):
        with pytest.raises(BookingNotFoundException):
            BookingService(db).cancel("missing")
