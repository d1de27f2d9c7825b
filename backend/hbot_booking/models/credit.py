"""
Session-credit ledger model.

Each user owns an ordered, append-only list of credit packages. ``position``
is the package's index in that list; the (user_id, position) uniqueness turns
a concurrent append into an IntegrityError instead of a lost update.
"""

from datetime import datetime
from typing import Optional

import ulid
from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class CreditPackage(Base):
    """A bundle of prepaid sessions of one credit type."""

    __tablename__ = "credit_packages"

    __table_args__ = (
        UniqueConstraint("user_id", "position", name="uq_credit_packages_user_position"),
        UniqueConstraint("source_booking_id", name="uq_credit_packages_source_booking"),
        CheckConstraint("balance >= 0", name="ck_credit_packages_balance_non_negative"),
        CheckConstraint("balance <= original_balance", name="ck_credit_packages_balance_le_original"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    credit_type: Mapped[str] = mapped_column(String(50), nullable=False)
    balance: Mapped[int] = mapped_column(Integer, nullable=False)
    original_balance: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    package_name: Mapped[str] = mapped_column(String(255), nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    source_booking_id: Mapped[Optional[str]] = mapped_column(String(26), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CreditPackage(user_id={self.user_id}, position={self.position}, "
            f"type={self.credit_type}, balance={self.balance}/{self.original_balance})>"
        )
