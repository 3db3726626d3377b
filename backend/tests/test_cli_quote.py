import json
import sys
from decimal import Decimal

import pytest

from storefront import cli
from storefront.schemas.cart import CartLineIn


def _lines() -> list[CartLineIn]:
    return [
        CartLineIn(id="a", name="Shirt", unit_price=Decimal("30"), quantity=2),
        CartLineIn(id="b", name="Socks", unit_price=Decimal("15"), quantity=1),
    ]


def test_quote_rejects_save20_below_minimum() -> None:
    payload = cli.quote(_lines(), coupon_code="SAVE20", policy_name="checkout")
    assert payload["subtotal"] == "75.00"
    assert payload["shipping"] == "5.99"
    assert payload["tax"] == "6.00"
    assert payload["discount"] == "0.00"
    assert payload["total"] == "86.99"
    assert payload["coupon"] is None
    assert "25.00" in payload["coupon_message"]


def test_quote_applies_welcome10_under_cart_policy() -> None:
    payload = cli.quote(_lines(), coupon_code="welcome10", policy_name="cart")
    assert payload["coupon"] == "WELCOME10"
    assert payload["discount"] == "7.50"
    assert payload["total"] == "79.49"


def test_quote_command_reads_json_file(tmp_path, monkeypatch, capsys) -> None:
    cart_file = tmp_path / "cart.json"
    cart_file.write_text(
        json.dumps({"items": [{"id": "a", "name": "Tent", "unit_price": "120.00", "quantity": 1}]}),
        encoding="utf-8",
    )
    monkeypatch.setattr(sys, "argv", ["storefront-cli", "quote", "--input", str(cart_file), "--policy", "cart"])
    cli.main()
    output = json.loads(capsys.readouterr().out)
    assert output["shipping"] == "0.00"
    assert output["total"] == "129.60"


def test_quote_command_missing_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["storefront-cli", "quote", "--input", str(tmp_path / "none.json")])
    with pytest.raises(SystemExit):
        cli.main()
