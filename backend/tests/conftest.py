"""
Shared fixtures.

Tests run against SQLite. The environment is pinned before any
``hbot_booking`` import so settings never pick up a developer's .env.
"""

from datetime import date, datetime
import json
import os
from typing import Any, Callable, Dict, Optional

os.environ["CI"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_WEBHOOK_SECRET_PLATFORM"] = ""
os.environ["EMAIL_ENABLED"] = "false"
os.environ["PROMOTION_ENABLED"] = "false"
os.environ["ADMIN_API_KEY"] = "test-admin-key"

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
import ulid  # noqa: E402

from hbot_booking.api.dependencies.database import get_db  # noqa: E402
from hbot_booking.database import Base, build_engine  # noqa: E402
from hbot_booking.main import app  # noqa: E402
from hbot_booking.models.booking import Booking  # noqa: E402
from hbot_booking.models.schedule_slot import ScheduleSlot  # noqa: E402
from tests.helpers import SLOT_DATE, SLOT_TIME, sign_payload  # noqa: E402


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Fresh session per test. Matches production: objects survive commit."""
    session_factory = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def make_slot(db: Session) -> Callable[..., ScheduleSlot]:
    def _make(
        slot_date: date = SLOT_DATE,
        slot_time: str = SLOT_TIME,
        seats_total: int = 4,
        seats_available: Optional[int] = None,
    ) -> ScheduleSlot:
        slot = ScheduleSlot(
            id=str(ulid.ULID()),
            slot_date=slot_date,
            slot_time=slot_time,
            duration=60,
            seats_total=seats_total,
            seats_available=seats_total if seats_available is None else seats_available,
        )
        db.add(slot)
        db.commit()
        return slot

    return _make


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    def _make(
        *,
        payment_intent_id: Optional[str] = None,
        payment_status: str = "pending",
        service_id: Optional[str] = None,
        user_id: Optional[str] = None,
        booking_date: date = SLOT_DATE,
        booking_time: str = SLOT_TIME,
        completed_at: Optional[datetime] = None,
    ) -> Booking:
        booking = Booking(
            id=str(ulid.ULID()),
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            booking_date=booking_date,
            booking_time=booking_time,
            duration=60,
            location="midtown",
            group_size=1,
            service_id=service_id,
            user_id=user_id,
            amount=150,
            currency="usd",
            payment_intent_id=payment_intent_id,
            payment_status=payment_status,
            completed_at=completed_at,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def signed_webhook() -> Callable[[Dict[str, Any]], tuple[bytes, Dict[str, str]]]:
    def _sign(event: Dict[str, Any]) -> tuple[bytes, Dict[str, str]]:
        payload = json.dumps(event).encode()
        return payload, {"stripe-signature": sign_payload(payload), "content-type": "application/json"}

    return _sign
