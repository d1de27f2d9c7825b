"""Application-wide constants for the booking platform."""

from __future__ import annotations

import os

BRAND_NAME = "Midtown Biohack"
DEFAULT_CONTACT_EMAIL = "contact@midtownbiohack.com"

API_TITLE = f"{BRAND_NAME} Booking API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "Hyperbaric chamber session booking: slot availability, checkout, "
    "Stripe payment reconciliation and session credits."
)

# Stripe refuses charges under $0.50
MIN_CHARGE_CENTS = 50

# Webhook ledger
WEBHOOK_SOURCE_STRIPE = "stripe"

DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _split_env(name: str) -> list[str]:
    value = os.getenv(name, "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


ALLOWED_ORIGINS = _split_env("ALLOWED_ORIGINS") or DEFAULT_DEV_ORIGINS
