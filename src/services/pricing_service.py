"""Authoritative pricing for generated orders.

Prices are stored and computed in integer euro cents. The discount is
rounded half-up to the nearest cent, so a 10% discount on 2490 is 249 and
the final price 2241.

Example:
    pricing = PricingService(db)
    quote = await pricing.calculate_price("monthly-standard", "WELCOME10")
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.db.models import BoxType, PromoCode
from src.delivery.models import PriceQuote
from src.errors import PreconditionError

logger = logging.getLogger(__name__)


def apply_discount(price_cents: int, discount_percent: int) -> int:
    """Return the price after a percentage discount, in cents."""
    if discount_percent <= 0:
        return price_cents
    discount = (Decimal(price_cents) * Decimal(discount_percent) / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return max(price_cents - int(discount), 0)


class PricingService:
    """Box catalog and promo code backed price calculator."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def calculate_price(self, box_type: str, promo_code: str | None) -> PriceQuote:
        """Price one box, applying the promo code when it is valid.

        An unknown, disabled or expired promo code is ignored (no discount).

        Raises:
            PreconditionError: The box type is unknown or disabled (E-2003).
        """
        box = self.db.get(BoxType, box_type)
        if box is None or not box.is_enabled:
            raise PreconditionError(
                f"Box type '{box_type}' is not available for ordering.",
                code="E-2003",
            )

        promo = self._valid_promo(promo_code)
        if promo is None:
            return PriceQuote(
                original_price_cents=box.price_cents,
                final_price_cents=box.price_cents,
            )

        return PriceQuote(
            original_price_cents=box.price_cents,
            final_price_cents=apply_discount(box.price_cents, promo.discount_percent),
            discount_percent=promo.discount_percent,
            promo_code=promo.code,
        )

    async def list_enabled_box_types(self) -> set[str]:
        rows = self.db.query(BoxType.id).filter(BoxType.is_enabled.is_(True)).all()
        return {row[0] for row in rows}

    def _valid_promo(self, promo_code: str | None) -> PromoCode | None:
        if not promo_code or not promo_code.strip():
            return None

        promo = (
            self.db.query(PromoCode)
            .filter(func.upper(PromoCode.code) == promo_code.strip().upper())
            .first()
        )
        if promo is None or not promo.is_enabled:
            logger.debug("Ignoring unknown or disabled promo code %r", promo_code)
            return None
        if promo.valid_until is not None and promo.valid_until < date.today():
            logger.debug("Ignoring expired promo code %r", promo_code)
            return None
        return promo
