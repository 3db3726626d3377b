from decimal import Decimal

from storefront.services.cart import Cart, CartLine
from storefront.services.coupons import AppliedCoupon, CouponType


def _line(line_id: str, price: str, quantity: int = 1, max_quantity: int | None = None) -> CartLine:
    return CartLine(id=line_id, name=f"Item {line_id}", unit_price=Decimal(price), quantity=quantity, max_quantity=max_quantity)


def test_add_item_appends_and_merges_by_id() -> None:
    cart = Cart()
    cart.add_item(_line("a", "30.00", 2))
    cart.add_item(_line("b", "15.00"))
    cart.add_item(_line("a", "30.00", 1))

    assert [line.id for line in cart.lines] == ["a", "b"]
    assert cart.quantity_of("a") == 3
    assert cart.item_count() == 4


def test_add_item_clamps_to_max_quantity() -> None:
    cart = Cart()
    cart.add_item(_line("a", "5.00", 4, max_quantity=5))
    cart.add_item(_line("a", "5.00", 3, max_quantity=5))
    assert cart.quantity_of("a") == 5

    cart.add_item(_line("b", "5.00", 10, max_quantity=2))
    assert cart.quantity_of("b") == 2


def test_update_quantity_clamps_both_ends() -> None:
    cart = Cart()
    cart.add_item(_line("a", "10.00", 2, max_quantity=4))

    cart.update_quantity("a", 0)
    assert cart.quantity_of("a") == 1
    cart.update_quantity("a", -7)
    assert cart.quantity_of("a") == 1
    cart.update_quantity("a", 99)
    assert cart.quantity_of("a") == 4
    cart.update_quantity("a", 3)
    assert cart.quantity_of("a") == 3


def test_update_quantity_without_max_and_unknown_id() -> None:
    cart = Cart()
    cart.add_item(_line("a", "10.00"))
    cart.update_quantity("a", 250)
    assert cart.quantity_of("a") == 250

    cart.update_quantity("missing", 3)
    assert not cart.contains("missing")
    assert cart.item_count() == 250


def test_remove_item_is_noop_when_absent() -> None:
    cart = Cart()
    cart.add_item(_line("a", "10.00"))
    cart.remove_item("zzz")
    assert cart.contains("a")
    cart.remove_item("a")
    assert cart.lines == []
    assert cart.quantity_of("a") == 0


def test_subtotal_is_order_independent_and_unrounded() -> None:
    lines = [_line("a", "0.105", 3), _line("b", "19.99", 2), _line("c", "0.333", 7)]
    forward = Cart()
    backward = Cart()
    for line in lines:
        forward.add_item(line)
    for line in reversed(lines):
        backward.add_item(line)

    expected = Decimal("0.105") * 3 + Decimal("19.99") * 2 + Decimal("0.333") * 7
    assert forward.subtotal() == expected
    assert backward.subtotal() == expected
    assert forward.subtotal() == Decimal("42.626")


def test_clear_drops_lines_and_applied_coupon() -> None:
    cart = Cart()
    cart.add_item(_line("a", "10.00"))
    cart.applied_coupon = AppliedCoupon(
        code="WELCOME10", description="10% off", type=CouponType.percentage, value=Decimal("10")
    )
    cart.clear()
    assert cart.lines == []
    assert cart.applied_coupon is None
    assert cart.subtotal() == Decimal("0")
    assert cart.item_count() == 0


def test_snapshot_is_immutable_copy() -> None:
    cart = Cart()
    cart.add_item(_line("a", "10.00"))
    snap = cart.snapshot()
    cart.update_quantity("a", 5)
    assert snap[0].quantity == 1
    assert isinstance(snap, tuple)
