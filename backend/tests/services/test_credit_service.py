from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from hbot_booking.constants.credit_rules import CreditType
from hbot_booking.core.exceptions import ServiceException
from hbot_booking.models.credit import CreditPackage
from hbot_booking.services.credit_service import (
    MAX_APPEND_ATTEMPTS,
    CreditService,
    NewCreditPackage,
)
from tests.helpers import utc

NOW = utc(2025, 11, 3, 12, 0)


def _new(sessions: int = 4, **kwargs) -> NewCreditPackage:
    return NewCreditPackage(
        credit_type=kwargs.pop("credit_type", CreditType.HBOT),
        sessions=sessions,
        package_name=kwargs.pop("package_name", "Starter"),
        **kwargs,
    )


def test_append_preserves_order(db):
    service = CreditService(db)
    first = service.append_credit("user-1", _new(4, package_name="first"))
    second = service.append_credit("user-1", _new(8, package_name="second"))
    service.append_credit("user-2", _new(1, package_name="other user"))

    packages = service.credits("user-1")
    assert [package.package_name for package in packages] == ["first", "second"]
    assert (first.position, second.position) == (0, 1)
    assert packages[1].balance == packages[1].original_balance == 8


def test_no_credits_for_new_user(db):
    assert CreditService(db).credits("nobody") == []
    assert CreditService(db).credit_summary("nobody") == {}


def test_same_source_booking_appended_once(db):
    service = CreditService(db)
    first = service.append_credit("user-1", _new(12, source_booking_id="booking-1"))
    again = service.append_credit("user-1", _new(12, source_booking_id="booking-1"))

    assert again.id == first.id
    assert db.query(CreditPackage).count() == 1


class TestConcurrentAppend:
    def test_lost_position_is_retried(self, db):
        service = CreditService(db)
        service.append_credit("user-1", _new(4, package_name="first"))
        # A concurrent writer read the same max position before this one inserted.
        service.credit_repository.next_position = MagicMock(side_effect=[0, 1])

        second = service.append_credit("user-1", _new(12, source_booking_id="booking-2"))

        assert second.position == 1
        assert service.credit_repository.next_position.call_count == 2
        assert [p.package_name for p in service.credits("user-1")] == ["first", "Starter"]
        assert [p.position for p in service.credits("user-1")] == [0, 1]

    def test_gives_up_after_max_attempts(self, db):
        service = CreditService(db)
        service.append_credit("user-1", _new(4))
        service.credit_repository.next_position = MagicMock(return_value=0)

        with pytest.raises(ServiceException) as exc_info:
            service.append_credit("user-1", _new(8))

        assert exc_info.value.code == "CREDIT_APPEND_CONTENDED"
        assert service.credit_repository.next_position.call_count == MAX_APPEND_ATTEMPTS
        assert len(service.credits("user-1")) == 1


def test_summary_excludes_expired(db):
    service = CreditService(db)
    service.append_credit(
        "user-1", _new(12, credit_type=CreditType.CHALLENGE, expires_at=NOW + timedelta(days=84))
    )
    service.append_credit(
        "user-1", _new(6, credit_type=CreditType.CHALLENGE, expires_at=NOW - timedelta(days=1))
    )
    service.append_credit("user-1", _new(2, credit_type=CreditType.HBOT))

    assert service.credit_summary("user-1", now=NOW) == {
        CreditType.CHALLENGE: 12,
        CreditType.HBOT: 2,
    }


class TestGrantForBooking:
    def test_challenge_package(self, db, make_booking):
        booking = make_booking(
            payment_intent_id="pi_1",
            payment_status="completed",
            service_id="morris-12-week",
            user_id="user-1",
        )
        package = CreditService(db).grant_for_booking(booking, source="webhook", now=NOW)

        assert package.credit_type == CreditType.CHALLENGE
        assert package.balance == 12
        assert package.original_balance == 12
        assert package.source_booking_id == booking.id
        assert package.package_name == "12 Week Morris Method Challenge"
        assert package.expires_at.replace(tzinfo=None) == (NOW + timedelta(days=84)).replace(
            tzinfo=None
        )

    @pytest.mark.parametrize(
        "service_id, user_id",
        [(None, "user-1"), ("single-session", "user-1"), ("morris-12-week", None)],
    )
    def test_nothing_to_grant(self, db, make_booking, service_id, user_id):
        booking = make_booking(
            payment_status="completed", service_id=service_id, user_id=user_id
        )
        assert CreditService(db).grant_for_booking(booking, source="webhook") is None
        assert db.query(CreditPackage).count() == 0

    def test_second_grant_returns_existing(self, db, make_booking):
        booking = make_booking(
            payment_status="completed", service_id="gray-matter-recovery-3mo", user_id="user-1"
        )
        service = CreditService(db)
        first = service.grant_for_booking(booking, source="webhook")
        second = service.grant_for_booking(booking, source="repair")
        assert first.id == second.id
        assert len(service.credits("user-1")) == 1
