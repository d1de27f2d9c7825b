from hbot_booking.models.schedule_slot import ScheduleSlot
from tests.helpers import SLOT_DATE, SLOT_TIME

CHECKOUT = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "grace@example.com",
    "phone": "555-0100",
    "date": SLOT_DATE.isoformat(),
    "time": SLOT_TIME,
    "duration": "60",
    "group_size": "3",
    "location": "midtown",
    "service_id": "morris-12-week",
}


def test_quote(client):
    response = client.post(
        "/api/v1/pricing/quote",
        json={"duration": 60, "group_size": "3", "location": "midtown", "date": "2025-11-03"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 382.5
    assert body["amount_cents"] == 38250
    assert body["currency"] == "usd"
    assert body["promotion_applied"] is False


def test_quote_rejects_bad_duration(client):
    response = client.post(
        "/api/v1/pricing/quote",
        json={"duration": "an hour", "group_size": 1, "location": "midtown", "date": "2025-11-03"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PRICING_INPUT"


def test_available_times(client, make_slot):
    make_slot(slot_time="9:00 AM")
    make_slot(slot_time="11:00 AM", seats_total=2, seats_available=0)
    response = client.get(f"/api/v1/schedule/{SLOT_DATE.isoformat()}/available")
    assert response.status_code == 200
    assert response.json() == {"date": "2025-11-03", "times": ["9:00 AM"]}


def test_checkout_charges_the_quoted_amount(client, make_slot):
    make_slot()
    quote = client.post(
        "/api/v1/pricing/quote",
        json={"duration": 60, "group_size": 3, "location": "midtown", "date": "2025-11-03"},
    ).json()

    response = client.post("/api/v1/bookings/checkout", json=CHECKOUT, headers={"X-User-Id": "u1"})

    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == quote["amount"]
    assert body["amount_cents"] == quote["amount_cents"]
    assert body["payment_intent_id"] == f"mock_pi_{body['booking_id']}"
    assert body["client_secret"].endswith("_secret_mock")

    booking = client.get(f"/api/v1/bookings/{body['booking_id']}").json()
    assert booking["payment_status"] == "pending"
    assert booking["user_id"] == "u1"
    assert booking["date"] == "2025-11-03"
    assert booking["time"] == SLOT_TIME


def test_checkout_unknown_slot(client):
    response = client.post("/api/v1/bookings/checkout", json=CHECKOUT)
    assert response.status_code == 404
    assert response.json()["code"] == "SLOT_NOT_FOUND"


def test_checkout_full_slot(client, make_slot):
    make_slot(seats_total=1, seats_available=0)
    response = client.post("/api/v1/bookings/checkout", json=CHECKOUT)
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_EXHAUSTED"


def test_checkout_validates_body(client):
    response = client.post("/api/v1/bookings/checkout", json={**CHECKOUT, "email": "not-an-email"})
    assert response.status_code == 422
    response = client.post("/api/v1/bookings/checkout", json={**CHECKOUT, "group_size": "0"})
    assert response.status_code == 422
    response = client.post("/api/v1/bookings/checkout", json={**CHECKOUT, "extra": True})
    assert response.status_code == 422


def test_cancel_frees_seat(client, db, make_slot):
    slot = make_slot(seats_total=2)
    booking_id = client.post("/api/v1/bookings/checkout", json=CHECKOUT).json()["booking_id"]

    first = client.post(f"/api/v1/bookings/{booking_id}/cancel")
    second = client.post(f"/api/v1/bookings/{booking_id}/cancel")

    assert first.json() == {"booking_id": booking_id, "cancelled": True, "payment_status": "failed"}
    assert second.json()["cancelled"] is False
    db.expire_all()
    assert db.get(ScheduleSlot, slot.id).seats_available == 2


def test_unknown_booking(client):
    response = client.get("/api/v1/bookings/01HZZZZZZZZZZZZZZZZZZZZZZZ")
    assert response.status_code == 404
