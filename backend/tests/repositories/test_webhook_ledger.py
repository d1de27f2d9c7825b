from hbot_booking.services.webhook_ledger_service import WebhookLedgerService


def _log(service: WebhookLedgerService, event_id: str, event_type: str = "payment_intent.succeeded"):
    event = service.log_received(
        source="stripe", event_type=event_type, payload={"id": event_id}, event_id=event_id
    )
    service.db.commit()
    return event


def test_redelivery_bumps_retry_count(db):
    service = WebhookLedgerService(db)
    first = _log(service, "evt_1")
    again = _log(service, "evt_1")

    assert again.id == first.id
    assert again.retry_count == 1
    assert again.last_retry_at is not None
    assert len(service.list_events()) == 1


def test_events_without_id_always_logged(db):
    service = WebhookLedgerService(db)
    service.log_received(source="stripe", event_type="ping", payload={})
    service.log_received(source="stripe", event_type="ping", payload={})
    db.commit()
    assert len(service.list_events()) == 2


def test_status_tracking_and_filters(db):
    service = WebhookLedgerService(db)
    done = _log(service, "evt_done")
    broken = _log(service, "evt_broken", event_type="payment_intent.payment_failed")

    service.mark_processed(done, related_entity_type="booking", related_entity_id="b1", duration_ms=3)
    service.mark_failed(broken, error="boom", status="inconsistent", related_entity_id="b2")
    db.commit()

    assert [e.event_id for e in service.list_events(status="processed")] == ["evt_done"]
    inconsistent = service.list_events(status="inconsistent")
    assert inconsistent[0].processing_error == "boom"
    assert inconsistent[0].related_entity_id == "b2"
    assert [
        e.event_id for e in service.list_events(event_type="payment_intent.payment_failed")
    ] == ["evt_broken"]
    assert service.get_event(done.id).processed_at is not None
