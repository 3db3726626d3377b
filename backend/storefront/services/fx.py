from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Final, Mapping

from storefront.core.config import settings
from storefront.services.pricing import quantize_money, to_decimal


CURRENCY_SYMBOLS: Final[dict[str, str]] = {"USD": "$", "NGN": "₦"}


@dataclass(frozen=True)
class DualAmount:
    primary: str
    secondary: str
    both: str


def _rates(rates: Mapping[str, Decimal] | None) -> Mapping[str, Decimal]:
    return rates if rates is not None else settings.fx_rates


def _rate_for(currency: str, rates: Mapping[str, Decimal]) -> Decimal:
    code = (currency or "").strip().upper()
    if code not in rates or code not in CURRENCY_SYMBOLS:
        raise ValueError(f"Unsupported currency: {currency}")
    rate = to_decimal(rates[code])
    if rate <= 0:
        raise ValueError(f"Invalid exchange rate for {code}")
    return rate


def convert(
    amount: Decimal, from_currency: str, to_currency: str, *, rates: Mapping[str, Decimal] | None = None
) -> Decimal:
    """Convert via the base currency; rates are units of currency per base unit."""
    table = _rates(rates)
    source = _rate_for(from_currency, table)
    target = _rate_for(to_currency, table)
    if from_currency.upper() == to_currency.upper():
        return to_decimal(amount)
    return to_decimal(amount) / source * target


def format_money(amount: Decimal, currency: str) -> str:
    code = (currency or "").strip().upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        raise ValueError(f"Unsupported currency: {currency}")
    value = quantize_money(to_decimal(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_dual(
    usd_amount: Decimal, *, primary: str = "USD", rates: Mapping[str, Decimal] | None = None
) -> DualAmount:
    if primary.upper() not in {"USD", "NGN"}:
        raise ValueError(f"Unsupported currency: {primary}")
    ngn_amount = convert(usd_amount, "USD", "NGN", rates=rates)
    usd_text = format_money(usd_amount, "USD")
    ngn_text = format_money(ngn_amount, "NGN")
    if primary.upper() == "NGN":
        return DualAmount(primary=ngn_text, secondary=usd_text, both=f"{usd_text} / {ngn_text}")
    return DualAmount(primary=usd_text, secondary=ngn_text, both=f"{usd_text} / {ngn_text}")
