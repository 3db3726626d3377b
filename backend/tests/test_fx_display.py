from decimal import Decimal

import pytest

from storefront.services import fx


def test_convert_uses_configured_rates() -> None:
    assert fx.convert(Decimal("2"), "USD", "NGN") == Decimal("3300")
    assert fx.convert(Decimal("3300"), "NGN", "USD") == Decimal("2")
    assert fx.convert(Decimal("7.5"), "usd", "USD") == Decimal("7.5")


def test_convert_with_explicit_rates() -> None:
    rates = {"USD": Decimal("1"), "NGN": Decimal("1500")}
    assert fx.convert(Decimal("1.5"), "USD", "NGN", rates=rates) == Decimal("2250")


def test_format_money() -> None:
    assert fx.format_money(Decimal("1234.5"), "USD") == "$1,234.50"
    assert fx.format_money(Decimal("86.985"), "USD") == "$86.99"
    assert fx.format_money(Decimal("2036775"), "NGN") == "₦2,036,775.00"
    assert fx.format_money(Decimal("-3"), "USD") == "-$3.00"


def test_format_dual_orders_by_primary_currency() -> None:
    usd_first = fx.format_dual(Decimal("10"))
    assert usd_first.primary == "$10.00"
    assert usd_first.secondary == "₦16,500.00"
    assert usd_first.both == "$10.00 / ₦16,500.00"

    ngn_first = fx.format_dual(Decimal("10"), primary="NGN")
    assert ngn_first.primary == "₦16,500.00"
    assert ngn_first.secondary == "$10.00"
    assert ngn_first.both == usd_first.both


@pytest.mark.parametrize("call", [
    lambda: fx.convert(Decimal("1"), "USD", "EUR"),
    lambda: fx.format_money(Decimal("1"), "GBP"),
    lambda: fx.format_dual(Decimal("1"), primary="EUR"),
    lambda: fx.convert(Decimal("1"), "USD", "NGN", rates={"USD": Decimal("1"), "NGN": Decimal("0")}),
])
def test_unsupported_currency_raises(call) -> None:
    with pytest.raises(ValueError):
        call()
