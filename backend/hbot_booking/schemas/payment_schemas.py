"""Payment webhook and reconciliation schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from .base import StandardizedModel, StrictModel


class WebhookResponse(StrictModel):
    """Response for webhook processing."""

    status: str = Field(..., description="Processing status (processed, duplicate, ignored, inconsistent)")
    event_type: str = Field(..., description="Stripe event type")
    message: Optional[str] = Field(None, description="Additional information")


class ReconciliationOutcomeResponse(StandardizedModel):
    status: str
    event_type: str
    event_id: Optional[str] = None
    webhook_event_id: Optional[str] = None
    booking_id: Optional[str] = None
    credit_package_id: Optional[str] = None
    message: Optional[str] = None


class WebhookEventResponse(StandardizedModel):
    id: str
    source: str
    event_type: str
    event_id: Optional[str] = None
    status: str
    processing_error: Optional[str] = None
    processing_duration_ms: Optional[int] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    received_at: datetime
    processed_at: Optional[datetime] = None
    retry_count: int = 0


class MissingCreditGrant(StandardizedModel):
    booking_id: str = Field(validation_alias="id")
    user_id: Optional[str] = None
    service_id: Optional[str] = None
    booking_date: date
    completed_at: Optional[datetime] = None


class MissingCreditGrantsResponse(StandardizedModel):
    count: int
    bookings: List[MissingCreditGrant]


class GrantMissingCreditsRequest(StrictModel):
    booking_id: str = Field(..., min_length=1, max_length=26)
