from unittest.mock import MagicMock, patch

from hbot_booking.core.config import settings
from hbot_booking.tasks.reconciliation_tasks import run_missing_credit_sweep
from tests.helpers import utc


def test_sweep_reports_completed_bookings_without_credits(db, make_booking):
    missing = make_booking(
        payment_status="completed",
        service_id="morris-12-week",
        user_id="user-1",
        completed_at=utc(2025, 11, 3, 10, 0),
    )
    make_booking(payment_status="completed", service_id="morris-12-week")  # guest
    make_booking(payment_status="pending", service_id="morris-12-week", user_id="user-2")
    make_booking(payment_status="completed", service_id="single", user_id="user-3")

    results = run_missing_credit_sweep(db)

    assert results["missing"] == 1
    assert results["booking_ids"] == [missing.id]
    assert results["notified"] is False


def test_sweep_emails_operator(db, make_booking, monkeypatch):
    monkeypatch.setattr(settings, "email_enabled", True)
    booking = make_booking(
        payment_status="completed", service_id="optimal-wellness-3mo", user_id="user-1"
    )
    sender = MagicMock()
    with patch(
        "hbot_booking.tasks.reconciliation_tasks.build_email_sender", return_value=sender
    ):
        results = run_missing_credit_sweep(db)

    assert results["notified"] is True
    to_email, subject, html = sender.send_email.call_args.args
    assert to_email == settings.admin_email
    assert booking.id in html


def test_clean_ledger_sends_nothing(db, monkeypatch):
    monkeypatch.setattr(settings, "email_enabled", True)
    with patch("hbot_booking.tasks.reconciliation_tasks.build_email_sender") as build:
        results = run_missing_credit_sweep(db)
    assert results["missing"] == 0
    build.assert_not_called()
