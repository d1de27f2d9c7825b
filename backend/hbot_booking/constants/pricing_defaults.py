"""Default pricing configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

# Session price by duration in minutes (dollars)
BASE_PRICES: Dict[int, Decimal] = {
    20: Decimal("1"),  # test option
    60: Decimal("150"),
    90: Decimal("200"),
    120: Decimal("250"),
}
FALLBACK_DURATION = 60

# Group discount curve: each multiplier stays below the head count
GROUP_SIZE_MULTIPLIERS: Dict[int, Decimal] = {
    1: Decimal("1.0"),
    2: Decimal("1.8"),  # 10% per guest
    3: Decimal("2.55"),  # 15% per guest
    4: Decimal("3.2"),  # 20% per guest
    5: Decimal("3.75"),  # 25% per guest
}
DEFAULT_GROUP_MULTIPLIER = Decimal("1.0")

DEFAULT_PROMOTION_PRICES: Dict[str, Decimal] = {
    "20": Decimal("0"),
    "45": Decimal("75"),
    "60": Decimal("90"),
}


@dataclass(frozen=True)
class PromotionWindow:
    """A fixed-price promotion limited to one location and an inclusive date range."""

    location: str
    start_date: date
    end_date: date
    prices: Dict[int, Decimal] = field(default_factory=dict)

    def is_active(self, location: str, booking_date: date) -> bool:
        if location != self.location:
            return False
        return self.start_date <= booking_date <= self.end_date

    def price_for(self, duration: int) -> Optional[Decimal]:
        return self.prices.get(duration)
