"""
Session pricing.

``calculate_price`` is the one place a booking amount is computed. The quote
endpoint and checkout both go through ``PricingService.quote``, which only adds
the configured promotion window, so the two can never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..constants.pricing_defaults import (
    BASE_PRICES,
    DEFAULT_GROUP_MULTIPLIER,
    FALLBACK_DURATION,
    GROUP_SIZE_MULTIPLIERS,
    PromotionWindow,
)
from ..core.config import settings
from ..core.exceptions import ValidationException
from .base import BaseService

IntLike = Union[int, str]

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PriceQuote:
    """Amount for one booking selection plus how it was derived."""

    amount: Decimal
    base_price: Decimal
    multiplier: Decimal
    promotion_applied: bool


def _coerce_int(value: IntLike, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a whole number", code="INVALID_PRICING_INPUT")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationException(
            f"{field} must be a whole number",
            code="INVALID_PRICING_INPUT",
            details={field: value},
        )


def base_price_for(duration: int) -> Decimal:
    return BASE_PRICES.get(duration, BASE_PRICES[FALLBACK_DURATION])


def calculate_quote(
    duration: IntLike,
    group_size: IntLike,
    location: str,
    booking_date: date,
    promotion: Optional[PromotionWindow] = None,
) -> PriceQuote:
    """
    Price a session.

    An active promotion with a price for the duration wins outright and no
    group discount is applied. An active promotion without a price for the
    duration falls back to the undiscounted base price. Otherwise the base price
    is scaled by the group multiplier (unknown sizes use 1.0).
    """
    minutes = _coerce_int(duration, "duration")
    guests = _coerce_int(group_size, "group_size")
    base = base_price_for(minutes)

    if promotion is not None and promotion.is_active(location, booking_date):
        promo_price = promotion.price_for(minutes)
        amount = promo_price if promo_price is not None else base
        return PriceQuote(
            amount=amount.quantize(CENTS, rounding=ROUND_HALF_UP),
            base_price=base,
            multiplier=DEFAULT_GROUP_MULTIPLIER,
            promotion_applied=True,
        )

    multiplier = GROUP_SIZE_MULTIPLIERS.get(guests, DEFAULT_GROUP_MULTIPLIER)
    return PriceQuote(
        amount=(base * multiplier).quantize(CENTS, rounding=ROUND_HALF_UP),
        base_price=base,
        multiplier=multiplier,
        promotion_applied=False,
    )


def calculate_price(
    duration: IntLike,
    group_size: IntLike,
    location: str,
    booking_date: date,
    promotion: Optional[PromotionWindow] = None,
) -> Decimal:
    return calculate_quote(duration, group_size, location, booking_date, promotion).amount


def to_minor_units(amount: Decimal) -> int:
    """Dollars to cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PricingService(BaseService):
    """Applies the configured promotion window to ``calculate_quote``."""

    def __init__(self, db: Session, promotion: Optional[PromotionWindow] = None) -> None:
        super().__init__(db)
        self._promotion = promotion

    @property
    def promotion(self) -> Optional[PromotionWindow]:
        if self._promotion is not None:
            return self._promotion
        return settings.active_promotion

    @BaseService.measure_operation("pricing.quote")
    def quote(
        self,
        *,
        duration: IntLike,
        group_size: IntLike,
        location: str,
        booking_date: date,
    ) -> PriceQuote:
        return calculate_quote(duration, group_size, location, booking_date, self.promotion)
