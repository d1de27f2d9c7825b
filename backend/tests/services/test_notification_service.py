from unittest.mock import MagicMock, patch

import pytest

from hbot_booking.core.config import settings
from hbot_booking.models.credit import CreditPackage
from hbot_booking.services.email_console import ConsoleEmailService
from hbot_booking.services.notification_service import NotificationService, build_email_sender


@pytest.fixture
def email_on(monkeypatch):
    monkeypatch.setattr(settings, "email_enabled", True)


def test_disabled_email_sends_nothing(db, make_booking):
    sender = MagicMock()
    assert NotificationService(db, sender).booking_confirmed(make_booking()) is False
    sender.send_email.assert_not_called()


def test_booking_confirmation(db, make_booking, email_on):
    sender = MagicMock()
    booking = make_booking()
    assert NotificationService(db, sender).booking_confirmed(booking) is True

    to_email, subject, html = sender.send_email.call_args.args
    assert to_email == "ada@example.com"
    assert "confirmed" in subject
    assert booking.booking_time in html


def test_credit_email_names_program(db, make_booking, email_on):
    sender = MagicMock()
    booking = make_booking(service_id="morris-12-week", user_id="user-1")
    package = CreditPackage(
        user_id="user-1",
        position=0,
        credit_type="challenge",
        balance=12,
        original_balance=12,
        package_name="12 Week Morris Method Challenge",
    )
    NotificationService(db, sender).credits_granted(booking, package)
    html = sender.send_email.call_args.args[2]
    assert "Challenge Program" in html
    assert "never" in html


def test_inconsistency_goes_to_operator(db, make_booking, email_on):
    sender = MagicMock()
    booking = make_booking()
    NotificationService(db, sender).credit_grant_inconsistent(
        booking.id, "credit store down", user_id="user-1", service_id="morris-12-week"
    )
    to_email, subject, html = sender.send_email.call_args.args
    assert to_email == settings.admin_email
    assert booking.id in subject
    assert "credit store down" in html
    assert "morris-12-week" in html


def test_send_failure_is_swallowed(db, make_booking, email_on):
    sender = MagicMock()
    sender.send_email.side_effect = RuntimeError("smtp down")
    assert NotificationService(db, sender).payment_failed(make_booking()) is False


def test_console_sender_by_default(db):
    assert isinstance(build_email_sender(db), ConsoleEmailService)


class TestResendSender:
    def test_resend_selected_when_configured(self, db, monkeypatch):
        from hbot_booking.services.email import EmailService

        monkeypatch.setattr(settings, "email_provider", "resend")
        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        assert isinstance(build_email_sender(db), EmailService)

    def test_sends_html_with_text_fallback(self, db, monkeypatch):
        from hbot_booking.services.email import EmailService

        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        with patch("hbot_booking.services.email.resend.Emails.send", return_value={"id": "em_1"}) as send:
            result = EmailService(db).send_email("a@example.com", "Hi", "<p>Hello <b>there</b></p>")

        assert result == {"id": "em_1"}
        sent = send.call_args.args[0]
        assert sent["to"] == "a@example.com"
        assert sent["text"] == "Hello there"

    def test_provider_error_raised(self, db, monkeypatch):
        from hbot_booking.core.exceptions import ServiceException
        from hbot_booking.services.email import EmailService

        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        with patch("hbot_booking.services.email.resend.Emails.send", side_effect=RuntimeError("429")):
            with pytest.raises(ServiceException):
                EmailService(db).send_email("a@example.com", "Hi", "<p>x</p>")
