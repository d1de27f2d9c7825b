"""Repository for the per-user session-credit ledger."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.credit import CreditPackage
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CreditRepository(BaseRepository[CreditPackage]):
    """Read and append credit packages; there is no update or delete path."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, CreditPackage)

    def list_for_user(self, user_id: str) -> List[CreditPackage]:
        query = (
            self._build_query()
            .filter(CreditPackage.user_id == user_id)
            .order_by(CreditPackage.position.asc())
        )
        return self._execute_query(query)

    def next_position(self, user_id: str) -> int:
        query = self.db.query(func.max(CreditPackage.position)).filter(
            CreditPackage.user_id == user_id
        )
        current = self._execute_scalar(query)
        return 0 if current is None else int(current) + 1

    def find_by_source_booking(self, booking_id: str) -> Optional[CreditPackage]:
        return self.find_one_by(source_booking_id=booking_id)
