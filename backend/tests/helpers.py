"""Test helpers for building gateway events and signatures."""

from datetime import date, datetime, timezone
import hashlib
import hmac
import time
from typing import Any, Dict, Optional

import ulid

WEBHOOK_SECRET = "whsec_test_secret"
SLOT_DATE = date(2025, 11, 3)
SLOT_TIME = "9:00 AM"


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def payment_event(
    event_type: str, intent_id: Optional[str], event_id: Optional[str] = None
) -> Dict[str, Any]:
    data_object: Dict[str, Any] = {"object": "payment_intent"}
    if intent_id is not None:
        data_object["id"] = intent_id
    return {
        "id": event_id or f"evt_{ulid.ULID()}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": data_object},
    }


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Build a stripe-signature header the way Stripe does."""
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
