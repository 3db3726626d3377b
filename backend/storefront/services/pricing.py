from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP
from typing import TYPE_CHECKING, Literal

from storefront.core.config import settings

if TYPE_CHECKING:
    from storefront.services.cart import Cart
    from storefront.services.coupons import AppliedCoupon


MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")

MoneyRounding = Literal["half_up", "half_even", "up", "down"]


_ROUNDING_MAP: dict[str, str] = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
    "up": ROUND_UP,
    "down": ROUND_DOWN,
}


def quantize_money(value: Decimal, *, rounding: MoneyRounding = "half_up") -> Decimal:
    mode = _ROUNDING_MAP.get(str(rounding), ROUND_HALF_UP)
    return Decimal(value).quantize(MONEY_QUANT, rounding=mode)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal
    flat_shipping_cost: Decimal
    free_shipping_threshold: Decimal | None = None


def cart_policy() -> PricingPolicy:
    """Policy shown on the cart page: shipping is waived above the threshold."""
    return PricingPolicy(
        tax_rate=settings.tax_rate,
        flat_shipping_cost=settings.flat_shipping_cost,
        free_shipping_threshold=settings.free_shipping_threshold,
    )


def checkout_policy() -> PricingPolicy:
    """Policy charged at checkout: the flat fee applies regardless of subtotal."""
    return PricingPolicy(tax_rate=settings.tax_rate, flat_shipping_cost=settings.flat_shipping_cost)


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal

    def quantized(self, *, rounding: MoneyRounding = "half_up") -> PricingResult:
        """Round each component to cents; the total is re-added from the rounded parts."""
        subtotal = quantize_money(self.subtotal, rounding=rounding)
        shipping = quantize_money(self.shipping_cost, rounding=rounding)
        tax = quantize_money(self.tax, rounding=rounding)
        discount = quantize_money(self.discount, rounding=rounding)
        total = subtotal + shipping + tax - discount
        if total < 0:
            total = Decimal("0.00")
        return PricingResult(
            subtotal=subtotal,
            shipping_cost=shipping,
            tax=tax,
            discount=discount,
            total=quantize_money(total, rounding=rounding),
        )


def calculate_discount(subtotal: Decimal, applied: AppliedCoupon | None) -> Decimal:
    """Discount for ``subtotal`` under ``applied``, always within ``[0, subtotal]``.

    Eligibility is re-derived here rather than trusted from apply time: the cart
    may have shrunk below the coupon's minimum since it was applied.
    """
    if applied is None or subtotal <= 0:
        return ZERO
    if applied.min_order_amount is not None and subtotal < applied.min_order_amount:
        return ZERO

    value = max(to_decimal(applied.value), ZERO)
    if applied.type == "percentage":
        discount = subtotal * value / Decimal("100")
        if applied.max_discount is not None:
            discount = min(discount, to_decimal(applied.max_discount))
    elif applied.type == "fixed":
        discount = min(value, subtotal)
    else:
        return ZERO

    if discount < 0:
        return ZERO
    return min(discount, subtotal)


def _shipping_cost(subtotal: Decimal, policy: PricingPolicy) -> Decimal:
    threshold = policy.free_shipping_threshold
    if threshold is not None and subtotal >= threshold:
        return ZERO
    return policy.flat_shipping_cost


def compute_totals(cart: Cart, applied: AppliedCoupon | None, policy: PricingPolicy) -> PricingResult:
    subtotal = cart.subtotal()
    shipping = _shipping_cost(subtotal, policy)
    # Tax is charged on the pre-discount subtotal; the discount comes off afterwards.
    tax = subtotal * policy.tax_rate
    discount = calculate_discount(subtotal, applied)
    total = subtotal + shipping + tax - discount
    if total < 0:
        total = ZERO
    return PricingResult(subtotal=subtotal, shipping_cost=shipping, tax=tax, discount=discount, total=total)
