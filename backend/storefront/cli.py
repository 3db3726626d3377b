import argparse
import asyncio
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from storefront import seeds
from storefront.core.config import settings
from storefront.core.logging_config import configure_logging
from storefront.schemas.cart import CartLineIn, build_cart
from storefront.services import pricing
from storefront.services.coupons import InMemoryCouponRegistry, apply_coupon


def _load_cart_lines(path: Path) -> list[CartLineIn]:
    if not path.is_file():
        raise SystemExit(f"Input file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid JSON in {path}: {exc}") from exc
    items = raw.get("items", []) if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise SystemExit("Expected a list of cart items")
    return [CartLineIn.model_validate(item) for item in items]


def quote(lines: list[CartLineIn], *, coupon_code: str | None, policy_name: str) -> dict[str, Any]:
    """Price ``lines`` against the default coupon set, as the checkout page would."""
    cart = build_cart(lines)
    message = None
    if coupon_code:
        registry = InMemoryCouponRegistry(seeds.DEFAULT_COUPONS)
        message = apply_coupon(coupon_code, cart, registry).message
    policy = pricing.cart_policy() if policy_name == "cart" else pricing.checkout_policy()
    totals = pricing.compute_totals(cart, cart.applied_coupon, policy).quantized(rounding=settings.money_rounding)
    payload: dict[str, Any] = {
        "subtotal": totals.subtotal,
        "shipping": totals.shipping_cost,
        "tax": totals.tax,
        "discount": totals.discount,
        "total": totals.total,
        "coupon": cart.applied_coupon.code if cart.applied_coupon else None,
        "coupon_message": message,
    }
    return {key: str(value) if isinstance(value, Decimal) else value for key, value in payload.items()}


async def _seed_coupons() -> list[str]:
    from storefront.db.session import SessionLocal

    async with SessionLocal() as session:
        return await seeds.seed_coupons(session)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront pricing utilities")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("seed-coupons", help="Insert the default coupon set if missing")

    quote_cmd = subparsers.add_parser("quote", help="Price a cart JSON file")
    quote_cmd.add_argument("--input", required=True, help="Cart JSON path (list of items or {'items': [...]})")
    quote_cmd.add_argument("--coupon", default=None, help="Coupon code to apply")
    quote_cmd.add_argument("--policy", choices=["cart", "checkout"], default="checkout", help="Shipping policy")
    return parser


def _run_cli_command(args: argparse.Namespace) -> bool:
    if args.command == "seed-coupons":
        inserted = asyncio.run(_seed_coupons())
        print(f"Seeded {len(inserted)} coupon(s): {', '.join(inserted) or '-'}")
        return True

    if args.command == "quote":
        lines = _load_cart_lines(Path(args.input))
        print(json.dumps(quote(lines, coupon_code=args.coupon, policy_name=args.policy), indent=2))
        return True

    return False


def main():
    configure_logging(settings.log_json)
    parser = _build_parser()
    args = parser.parse_args()
    if not _run_cli_command(args):
        parser.print_help()


if __name__ == "__main__":
    main()
