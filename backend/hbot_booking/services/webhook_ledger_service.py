"""Service for logging verified gateway webhooks and tracking their outcome."""

from __future__ import annotations

from datetime import datetime, timezone
import time
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants.payment_status import WebhookEventStatus
from ..core.exceptions import RepositoryException
from ..models.webhook_event import WebhookEvent
from ..repositories.factory import RepositoryFactory
from .base import BaseService


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class WebhookLedgerService(BaseService):
    """Business logic for webhook ledger entries. Methods flush; callers commit."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.repository = RepositoryFactory.create_webhook_event_repository(db)

    def _bump_retry(self, existing: WebhookEvent, now: datetime) -> WebhookEvent:
        existing.retry_count = (existing.retry_count or 0) + 1
        existing.last_retry_at = now
        self.repository.flush()
        return existing

    @BaseService.measure_operation("webhook_ledger.log_received")
    def log_received(
        self,
        *,
        source: str,
        event_type: str,
        payload: dict[str, Any],
        event_id: str | None = None,
    ) -> WebhookEvent:
        """
        Log a received webhook before processing.

        A redelivered event id updates retry tracking on the existing row.
        """
        now = _now_utc()
        if event_id:
            existing = self.repository.find_by_source_and_event_id(source, event_id)
            if existing is not None:
                return self._bump_retry(existing, now)

        try:
            return self.repository.create(
                source=source,
                event_type=event_type or "unknown",
                event_id=event_id,
                payload=payload,
                status=WebhookEventStatus.RECEIVED,
                received_at=now,
                retry_count=0,
            )
        except RepositoryException as exc:
            # Another worker logged the same delivery first.
            if isinstance(exc.__cause__, IntegrityError) and event_id:
                existing = self.repository.find_by_source_and_event_id(source, event_id)
                if existing is not None:
                    return self._bump_retry(existing, now)
            raise

    @BaseService.measure_operation("webhook_ledger.mark_processed")
    def mark_processed(
        self,
        event: WebhookEvent,
        *,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
        duration_ms: int | None = None,
        status: str = WebhookEventStatus.PROCESSED,
    ) -> WebhookEvent:
        """Mark webhook as handled (processed or ignored)."""
        event.status = status
        event.processed_at = _now_utc()
        event.processing_error = None
        if related_entity_type is not None:
            event.related_entity_type = related_entity_type
        if related_entity_id is not None:
            event.related_entity_id = related_entity_id
        event.processing_duration_ms = duration_ms
        self.repository.flush()
        return event

    @BaseService.measure_operation("webhook_ledger.mark_failed")
    def mark_failed(
        self,
        event: WebhookEvent,
        *,
        error: str,
        duration_ms: int | None = None,
        status: str = WebhookEventStatus.FAILED,
        related_entity_id: str | None = None,
    ) -> WebhookEvent:
        """Mark webhook as failed or inconsistent."""
        event.status = status
        event.processing_error = error
        event.processed_at = _now_utc()
        event.processing_duration_ms = duration_ms
        if related_entity_id is not None:
            event.related_entity_type = "booking"
            event.related_entity_id = related_entity_id
        self.repository.flush()
        return event

    @BaseService.measure_operation("webhook_ledger.resolve_inconsistent")
    def resolve_inconsistent(self, booking_id: str) -> int:
        """Mark inconsistent events for a repaired booking processed; the error text is kept."""
        events = self.repository.list_events(
            status=WebhookEventStatus.INCONSISTENT, related_entity_id=booking_id, limit=100
        )
        for event in events:
            event.status = WebhookEventStatus.PROCESSED
        if events:
            self.repository.flush()
        return len(events)

    def get_event(self, webhook_event_id: str) -> WebhookEvent | None:
        return self.repository.get_event(webhook_event_id)

    @BaseService.measure_operation("webhook_ledger.list_events")
    def list_events(
        self,
        *,
        status: str | None = None,
        event_type: str | None = None,
        limit: int = 50,
    ) -> list[WebhookEvent]:
        return self.repository.list_events(status=status, event_type=event_type, limit=limit)

    @staticmethod
    def elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
