"""Session-credit ledger service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants.credit_rules import CreditAllocationRule, get_credit_allocation_rule
from ..core.exceptions import RepositoryException, ServiceException
from ..models.booking import Booking
from ..models.credit import CreditPackage
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

MAX_APPEND_ATTEMPTS = 5


@dataclass(frozen=True)
class NewCreditPackage:
    credit_type: str
    sessions: int
    package_name: str
    expires_at: Optional[datetime] = None
    source_booking_id: Optional[str] = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(package: CreditPackage, now: datetime) -> bool:
    return package.expires_at is not None and _as_utc(package.expires_at) <= _as_utc(now)


def active_balance(packages: Iterable[CreditPackage], credit_type: str, now: datetime) -> int:
    """Remaining sessions of ``credit_type`` in packages that have not expired at ``now``."""
    return sum(
        int(package.balance or 0)
        for package in packages
        if package.credit_type == credit_type and not is_expired(package, now)
    )


def package_from_rule(
    rule: CreditAllocationRule, *, now: datetime, source_booking_id: Optional[str] = None
) -> NewCreditPackage:
    return NewCreditPackage(
        credit_type=rule.credit_type,
        sessions=rule.sessions,
        package_name=rule.package_name,
        expires_at=now + timedelta(days=rule.expiration_days),
        source_booking_id=source_booking_id,
    )


class CreditService(BaseService):
    """Reads and appends per-user credit packages. Packages are never removed or reordered."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.credit_repository = RepositoryFactory.create_credit_repository(db)

    @BaseService.measure_operation("credits.list")
    def credits(self, user_id: str) -> List[CreditPackage]:
        return self.credit_repository.list_for_user(user_id)

    @BaseService.measure_operation("credits.summary")
    def credit_summary(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, int]:
        """Active balance per credit type, derived on every call."""
        now = now or datetime.now(timezone.utc)
        packages = self.credits(user_id)
        return {
            credit_type: active_balance(packages, credit_type, now)
            for credit_type in dict.fromkeys(package.credit_type for package in packages)
        }

    @BaseService.measure_operation("credits.append")
    def append_credit(self, user_id: str, package: NewCreditPackage) -> CreditPackage:
        """
        Append ``package`` at the end of the user's ledger.

        Position is max + 1; a concurrent append that takes the same position
        fails the unique constraint and this call retries with a fresh
        position. A package already appended for the same source booking is
        returned instead of appending a second one.
        """
        for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
            position = self.credit_repository.next_position(user_id)
            try:
                with self.transaction():
                    created = self.credit_repository.create(
                        user_id=user_id,
                        position=position,
                        credit_type=package.credit_type,
                        balance=package.sessions,
                        original_balance=package.sessions,
                        expires_at=package.expires_at,
                        package_name=package.package_name,
                        purchased_at=datetime.now(timezone.utc),
                        source_booking_id=package.source_booking_id,
                    )
                return created
            except RepositoryException as exc:
                if not isinstance(exc.__cause__, IntegrityError):
                    raise
                if package.source_booking_id:
                    existing = self.credit_repository.find_by_source_booking(
                        package.source_booking_id
                    )
                    if existing is not None:
                        self.logger.info(
                            f"Credit package for booking {package.source_booking_id} already exists"
                        )
                        return existing
                self.logger.warning(
                    f"Credit append for user {user_id} lost position {position} (attempt {attempt})"
                )

        raise ServiceException(
            f"Could not append credit package for user {user_id}",
            code="CREDIT_APPEND_CONTENDED",
            details={"user_id": user_id, "attempts": MAX_APPEND_ATTEMPTS},
        )

    def existing_grant(self, booking_id: str) -> Optional[CreditPackage]:
        return self.credit_repository.find_by_source_booking(booking_id)

    @BaseService.measure_operation("credits.grant_for_booking")
    def grant_for_booking(
        self, booking: Booking, *, source: str, now: Optional[datetime] = None
    ) -> Optional[CreditPackage]:
        """
        Append the package a paid booking is entitled to.

        Returns None for guest bookings and services that grant nothing.
        """
        rule = get_credit_allocation_rule(booking.service_id)
        if rule is None or not booking.user_id:
            return None

        existing = self.existing_grant(booking.id)
        if existing is not None:
            return existing

        now = now or datetime.now(timezone.utc)
        created = self.append_credit(
            booking.user_id, package_from_rule(rule, now=now, source_booking_id=booking.id)
        )
        prometheus_metrics.record_credit_grant(rule.credit_type, source)
        self.logger.info(
            f"Granted {rule.sessions} {rule.credit_type} credits to user {booking.user_id} "
            f"for booking {booking.id}"
        )
        return created
