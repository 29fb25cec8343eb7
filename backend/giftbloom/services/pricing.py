# backend/giftbloom/services/pricing.py

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from giftbloom.core import config
from giftbloom.models.order import OrderItemCreate, OrderTotals

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_money(value) -> Decimal:
    """Round any number to cents, half-up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class PricingRules:
    """Tax, shipping and promo code rules applied at checkout."""

    def __init__(
        self,
        tax_rate: Decimal = config.TAX_RATE,
        shipping_flat_rate: Decimal = config.SHIPPING_FLAT_RATE,
        free_shipping_threshold: Decimal = config.FREE_SHIPPING_THRESHOLD,
        promo_codes: Optional[Dict[str, Decimal]] = None,
    ):
        self.tax_rate = Decimal(tax_rate)
        self.shipping_flat_rate = to_money(shipping_flat_rate)
        self.free_shipping_threshold = to_money(free_shipping_threshold)
        self.promo_codes = {
            code.upper(): Decimal(percent)
            for code, percent in (config.PROMO_CODES if promo_codes is None else promo_codes).items()
        }

    def discount_percent(self, promo_code: Optional[str]) -> Optional[Decimal]:
        if not promo_code:
            return None
        return self.promo_codes.get(promo_code.strip().upper())

    def calculate(self, items: Iterable[OrderItemCreate], promo_code: Optional[str] = None) -> OrderTotals:
        items = list(items)
        subtotal = sum((to_money(item.unit_price) * item.quantity for item in items), Decimal("0"))
        subtotal = to_money(subtotal)

        tax_amount = to_money(subtotal * self.tax_rate)

        if subtotal == 0 or subtotal >= self.free_shipping_threshold:
            shipping_cost = Decimal("0.00")
        else:
            shipping_cost = self.shipping_flat_rate

        percent = self.discount_percent(promo_code)
        discount_amount = to_money(subtotal * percent / HUNDRED) if percent is not None else Decimal("0.00")

        total_amount = max(subtotal + tax_amount + shipping_cost - discount_amount, Decimal("0.00"))

        return OrderTotals(
            item_count=sum(item.quantity for item in items),
            subtotal=float(subtotal),
            tax_amount=float(tax_amount),
            shipping_cost=float(shipping_cost),
            discount_amount=float(discount_amount),
            total_amount=float(to_money(total_amount)),
            promo_code=promo_code.strip().upper() if promo_code else None,
            promo_code_valid=percent is not None,
        )
