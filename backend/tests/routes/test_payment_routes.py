import json

from pydantic import SecretStr

from hbot_booking.core.config import settings
from hbot_booking.models.credit import CreditPackage
from hbot_booking.models.webhook_event import WebhookEvent
from tests.helpers import SLOT_DATE, SLOT_TIME, payment_event, sign_payload

WEBHOOK_URL = "/api/v1/payments/webhooks/stripe"


def _checkout(client, user_id="u1", service_id="morris-12-week") -> dict:
    response = client.post(
        "/api/v1/bookings/checkout",
        json={
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "grace@example.com",
            "date": SLOT_DATE.isoformat(),
            "time": SLOT_TIME,
            "duration": 60,
            "location": "midtown",
            "service_id": service_id,
        },
        headers={"X-User-Id": user_id} if user_id else {},
    )
    assert response.status_code == 201
    return response.json()


def test_paid_checkout_grants_credits_once(client, db, make_slot, signed_webhook):
    make_slot()
    checkout = _checkout(client)
    payload, headers = signed_webhook(
        payment_event("payment_intent.succeeded", checkout["payment_intent_id"], "evt_paid")
    )

    first = client.post(WEBHOOK_URL, content=payload, headers=headers)
    second = client.post(WEBHOOK_URL, content=payload, headers=headers)

    assert first.status_code == 200
    assert first.json()["status"] == "processed"
    assert second.status_code == 200
    assert second.json()["status"] == "duplicate"
    assert db.query(CreditPackage).count() == 1

    booking = client.get(f"/api/v1/bookings/{checkout['booking_id']}").json()
    assert booking["payment_status"] == "completed"

    credits = client.get("/api/v1/credits", headers={"X-User-Id": "u1"}).json()
    assert credits["active_balances"] == {"challenge": 12}
    assert credits["packages"][0]["package_name"] == "12 Week Morris Method Challenge"


def test_invalid_signature_rejected_and_not_recorded(client, db):
    payload = json.dumps(payment_event("payment_intent.succeeded", "pi_1")).encode()
    response = client.post(
        WEBHOOK_URL,
        content=payload,
        headers={"stripe-signature": sign_payload(payload, secret="whsec_wrong")},
    )
    assert response.status_code == 400
    assert db.query(WebhookEvent).count() == 0


def test_missing_signature_rejected(client, db):
    response = client.post(WEBHOOK_URL, content=b"{}")
    assert response.status_code == 400
    assert db.query(WebhookEvent).count() == 0


def test_unconfigured_secret_is_server_error(client, monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", SecretStr(""))
    payload = b"{}"
    response = client.post(WEBHOOK_URL, content=payload, headers={"stripe-signature": "t=1,v1=x"})
    assert response.status_code == 500


def test_unknown_event_acknowledged(client, signed_webhook):
    payload, headers = signed_webhook(payment_event("customer.created", "cus_1"))
    response = client.post(WEBHOOK_URL, content=payload, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


def test_payment_failure(client, make_slot, signed_webhook):
    make_slot()
    checkout = _checkout(client, user_id=None)
    payload, headers = signed_webhook(
        payment_event("payment_intent.payment_failed", checkout["payment_intent_id"])
    )
    response = client.post(WEBHOOK_URL, content=payload, headers=headers)
    assert response.json()["status"] == "processed"
    booking = client.get(f"/api/v1/bookings/{checkout['booking_id']}").json()
    assert booking["payment_status"] == "failed"


def test_credits_require_user(client):
    assert client.get("/api/v1/credits").status_code == 401
