# backend/hbot_booking/api/dependencies/auth.py
"""
Caller identity dependencies.

Authentication happens upstream of this service; the gateway forwards the
signed-in user's id in a header (``settings.user_id_header``). Requests
without it are guest checkouts.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Request, status

from ...core.config import settings


def get_optional_user_id(request: Request) -> Optional[str]:
    value = request.headers.get(settings.user_id_header)
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_user_id(request: Request) -> str:
    """Reject requests that carry no user id."""
    user_id = get_optional_user_id(request)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Sign in required", "code": "USER_REQUIRED"},
        )
    return user_id


def require_admin(request: Request) -> None:
    """Operator endpoints need the configured admin key."""
    expected = settings.admin_api_key.get_secret_value()
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Admin endpoints are disabled", "code": "ADMIN_DISABLED"},
        )
    provided = request.headers.get(settings.admin_key_header) or ""
    if not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid admin key", "code": "ADMIN_KEY_INVALID"},
        )
