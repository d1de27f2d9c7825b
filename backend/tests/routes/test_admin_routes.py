from unittest.mock import patch

from pydantic import SecretStr

from hbot_booking.core.config import settings
from hbot_booking.core.exceptions import ServiceException
from hbot_booking.models.credit import CreditPackage
from tests.helpers import SLOT_DATE, payment_event

ADMIN = {"X-Admin-Key": "test-admin-key"}


def test_admin_key_required(client):
    assert client.get(f"/api/v1/admin/slots/{SLOT_DATE}").status_code == 401
    assert client.get(f"/api/v1/admin/slots/{SLOT_DATE}", headers={"X-Admin-Key": "x"}).status_code == 401


def test_admin_disabled_without_key(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", SecretStr(""))
    assert client.get(f"/api/v1/admin/slots/{SLOT_DATE}", headers=ADMIN).status_code == 403


def test_slot_lifecycle(client):
    created = client.put(
        "/api/v1/admin/slots",
        json={"date": SLOT_DATE.isoformat(), "time": "9:00 AM", "seats_total": 2},
        headers=ADMIN,
    )
    assert created.status_code == 200
    assert created.json()["seats_available"] == 2

    listed = client.get(f"/api/v1/admin/slots/{SLOT_DATE}", headers=ADMIN).json()
    assert [slot["time"] for slot in listed] == ["9:00 AM"]

    deleted = client.delete(f"/api/v1/admin/slots/{SLOT_DATE}/9:00 AM", headers=ADMIN)
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/admin/slots/{SLOT_DATE}", headers=ADMIN).json() == []


def test_delete_referenced_slot_conflicts(client, make_slot, make_booking):
    make_slot()
    make_booking()
    response = client.delete(f"/api/v1/admin/slots/{SLOT_DATE}/9:00 AM", headers=ADMIN)
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_IN_USE"


def test_missing_credit_repair_flow(client, db, make_booking, signed_webhook):
    booking = make_booking(
        payment_intent_id="pi_repair", service_id="morris-12-week", user_id="user-1"
    )
    payload, headers = signed_webhook(payment_event("payment_intent.succeeded", "pi_repair"))
    with patch(
        "hbot_booking.services.credit_service.CreditService.append_credit",
        side_effect=ServiceException("credit store unavailable"),
    ):
        response = client.post("/api/v1/payments/webhooks/stripe", content=payload, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "inconsistent"

    sweep = client.get("/api/v1/admin/reconciliation/missing-credits", headers=ADMIN).json()
    assert sweep["count"] == 1
    assert sweep["bookings"][0]["booking_id"] == booking.id

    events = client.get(
        "/api/v1/admin/webhook-events", params={"status": "inconsistent"}, headers=ADMIN
    ).json()
    assert [event["related_entity_id"] for event in events] == [booking.id]

    repaired = client.post(
        "/api/v1/admin/reconciliation/grant-missing-credits",
        json={"booking_id": booking.id},
        headers=ADMIN,
    )
    assert repaired.status_code == 200
    assert repaired.json()["balance"] == 12
    assert db.query(CreditPackage).count() == 1
    assert client.get("/api/v1/admin/reconciliation/missing-credits", headers=ADMIN).json() == {
        "count": 0,
        "bookings": [],
    }
    assert (
        client.get(
            "/api/v1/admin/webhook-events", params={"status": "inconsistent"}, headers=ADMIN
        ).json()
        == []
    )


def test_replay(client, signed_webhook):
    payload, headers = signed_webhook(payment_event("charge.refunded", "pi_1"))
    client.post("/api/v1/payments/webhooks/stripe", content=payload, headers=headers)
    event_id = client.get("/api/v1/admin/webhook-events", headers=ADMIN).json()[0]["id"]

    replayed = client.post(f"/api/v1/admin/webhook-events/{event_id}/replay", headers=ADMIN)
    assert replayed.status_code == 200
    assert replayed.json()["status"] == "ignored"
    assert client.post("/api/v1/admin/webhook-events/nope/replay", headers=ADMIN).status_code == 404


def test_health_and_metrics(client):
    assert client.get("/health").json()["status"] == "ok"
    metrics = client.get("/metrics/prometheus")
    assert metrics.status_code == 200
    assert "hbot_" in metrics.text
