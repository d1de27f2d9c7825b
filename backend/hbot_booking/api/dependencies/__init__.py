# backend/hbot_booking/api/dependencies/__init__.py
"""
FastAPI dependencies, re-exported for route modules.
"""

from .auth import get_optional_user_id, require_admin, require_user_id
from .database import get_db
from .services import (
    get_booking_service,
    get_checkout_service,
    get_credit_service,
    get_pricing_service,
    get_reconciliation_service,
    get_slot_service,
    get_webhook_ledger_service,
)

__all__ = [
    "get_booking_service",
    "get_checkout_service",
    "get_credit_service",
    "get_db",
    "get_optional_user_id",
    "get_pricing_service",
    "get_reconciliation_service",
    "get_slot_service",
    "get_webhook_ledger_service",
    "require_admin",
    "require_user_id",
]
