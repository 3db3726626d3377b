from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.seeds import DEFAULT_COUPONS
from storefront.services import pricing
from storefront.services.cart import Cart, CartLine
from storefront.services.coupons import AppliedCoupon, CouponType, InMemoryCouponRegistry, apply_coupon, remove_coupon

NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)
CHECKOUT = pricing.PricingPolicy(tax_rate=Decimal("0.08"), flat_shipping_cost=Decimal("5.99"))
CART_PAGE = pricing.PricingPolicy(
    tax_rate=Decimal("0.08"), flat_shipping_cost=Decimal("5.99"), free_shipping_threshold=Decimal("100")
)


def _cart(*lines: tuple[str, int]) -> Cart:
    cart = Cart()
    for idx, (price, qty) in enumerate(lines):
        cart.add_item(CartLine(id=f"p{idx}", name=f"Product {idx}", unit_price=Decimal(price), quantity=qty))
    return cart


def _applied(kind: CouponType, value: str, *, max_discount: str | None = None, minimum: str | None = None) -> AppliedCoupon:
    return AppliedCoupon(
        code="TEST",
        description="test",
        type=kind,
        value=Decimal(value),
        max_discount=Decimal(max_discount) if max_discount else None,
        min_order_amount=Decimal(minimum) if minimum else None,
    )


def test_quantize_money_rounding_modes() -> None:
    assert pricing.quantize_money(Decimal("1.005"), rounding="half_up") == Decimal("1.01")
    assert pricing.quantize_money(Decimal("1.005"), rounding="half_even") == Decimal("1.00")
    assert pricing.quantize_money(Decimal("1.001"), rounding="up") == Decimal("1.01")
    assert pricing.quantize_money(Decimal("1.009"), rounding="down") == Decimal("1.00")


def test_percentage_discount_capped_by_max_discount() -> None:
    applied = _applied(CouponType.percentage, "10", max_discount="10")
    assert pricing.calculate_discount(Decimal("200"), applied) == Decimal("10")


def test_percentage_discount_without_cap() -> None:
    applied = _applied(CouponType.percentage, "15")
    assert pricing.calculate_discount(Decimal("80"), applied) == Decimal("12")


def test_fixed_discount_never_exceeds_subtotal() -> None:
    applied = _applied(CouponType.fixed, "20")
    assert pricing.calculate_discount(Decimal("15"), applied) == Decimal("15")

    totals = pricing.compute_totals(_cart(("15", 1)), applied, CHECKOUT)
    assert totals.discount == Decimal("15")
    assert totals.total >= 0


def test_discount_is_zero_without_coupon_or_below_minimum() -> None:
    assert pricing.calculate_discount(Decimal("100"), None) == Decimal("0")
    applied = _applied(CouponType.percentage, "10", minimum="50")
    assert pricing.calculate_discount(Decimal("49.99"), applied) == Decimal("0")
    assert pricing.calculate_discount(Decimal("50"), applied) == Decimal("5")


@pytest.mark.parametrize(
    "subtotal",
    [Decimal("0"), Decimal("0.01"), Decimal("3.50"), Decimal("49.99"), Decimal("250"), Decimal("10000")],
)
@pytest.mark.parametrize(
    "applied",
    [
        _applied(CouponType.percentage, "100"),
        _applied(CouponType.percentage, "25", max_discount="50"),
        _applied(CouponType.fixed, "5.99"),
        _applied(CouponType.fixed, "500"),
        _applied(CouponType.fixed, "20", minimum="100"),
    ],
)
def test_discount_always_within_zero_and_subtotal(subtotal: Decimal, applied: AppliedCoupon) -> None:
    discount = pricing.calculate_discount(subtotal, applied)
    assert Decimal("0") <= discount <= subtotal


def test_discount_rechecks_minimum_after_cart_shrinks() -> None:
    registry = InMemoryCouponRegistry(DEFAULT_COUPONS)
    cart = _cart(("30", 2))
    assert apply_coupon("welcome10", cart, registry, now=NOW).success

    assert pricing.compute_totals(cart, cart.applied_coupon, CHECKOUT).discount == Decimal("6.0")
    cart.update_quantity("p0", 1)
    totals = pricing.compute_totals(cart, cart.applied_coupon, CHECKOUT)
    assert cart.applied_coupon is not None
    assert totals.discount == Decimal("0")


def test_shipping_threshold_only_applies_to_cart_policy() -> None:
    cart = _cart(("60", 2))
    assert pricing.compute_totals(cart, None, CART_PAGE).shipping_cost == Decimal("0")
    assert pricing.compute_totals(cart, None, CHECKOUT).shipping_cost == Decimal("5.99")

    small = _cart(("99.99", 1))
    assert pricing.compute_totals(small, None, CART_PAGE).shipping_cost == Decimal("5.99")


def test_tax_is_computed_before_discount() -> None:
    cart = _cart(("100", 1))
    totals = pricing.compute_totals(cart, _applied(CouponType.fixed, "20"), CHECKOUT)
    assert totals.tax == Decimal("8.00")
    assert totals.total == Decimal("100") + Decimal("5.99") + Decimal("8.00") - Decimal("20")


def test_removing_coupon_restores_undiscounted_total() -> None:
    registry = InMemoryCouponRegistry(DEFAULT_COUPONS)
    cart = _cart(("120", 1))
    assert apply_coupon("SAVE20", cart, registry, now=NOW).success
    remove_coupon(cart)

    totals = pricing.compute_totals(cart, cart.applied_coupon, CHECKOUT)
    assert totals.discount == Decimal("0")
    assert totals.total == totals.subtotal + totals.shipping_cost + totals.tax


def test_end_to_end_save20_rejected_below_minimum() -> None:
    registry = InMemoryCouponRegistry(DEFAULT_COUPONS)
    cart = _cart(("30", 2), ("15", 1))
    assert cart.subtotal() == Decimal("75")

    result = apply_coupon("SAVE20", cart, registry, now=NOW)
    assert not result.success
    assert cart.applied_coupon is None

    totals = pricing.compute_totals(cart, cart.applied_coupon, CHECKOUT).quantized()
    assert totals.tax == Decimal("6.00")
    assert totals.discount == Decimal("0.00")
    assert totals.total == Decimal("86.99")


def test_quantized_total_matches_rounded_parts() -> None:
    cart = _cart(("0.10", 3))
    totals = pricing.compute_totals(cart, None, CHECKOUT).quantized()
    assert totals.subtotal == Decimal("0.30")
    assert totals.tax == Decimal("0.02")
    assert totals.total == totals.subtotal + totals.shipping_cost + totals.tax - totals.discount


def test_policies_follow_settings() -> None:
    assert pricing.cart_policy().free_shipping_threshold == Decimal("100")
    assert pricing.checkout_policy().free_shipping_threshold is None
    assert pricing.checkout_policy().tax_rate == Decimal("0.08")
