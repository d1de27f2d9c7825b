"""Session-credit ledger schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from .base import StandardizedModel


class CreditPackageResponse(StandardizedModel):
    id: str
    position: int
    credit_type: str
    balance: int
    original_balance: int
    expires_at: Optional[datetime] = None
    package_name: str
    purchased_at: datetime
    source_booking_id: Optional[str] = None


class CreditLedgerResponse(StandardizedModel):
    user_id: str
    packages: List[CreditPackageResponse]
    active_balances: Dict[str, int]
