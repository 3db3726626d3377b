from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Protocol

from storefront.services import pricing
from storefront.services.cart import Cart

logger = logging.getLogger(__name__)


class CouponType(str, enum.Enum):
    percentage = "percentage"
    fixed = "fixed"


@dataclass(frozen=True)
class Coupon:
    code: str
    type: CouponType
    value: Decimal
    description: str = ""
    min_order_amount: Decimal | None = None
    max_discount: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    expires_at: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True)
class AppliedCoupon:
    code: str
    description: str
    type: CouponType
    value: Decimal
    max_discount: Decimal | None = None
    min_order_amount: Decimal | None = None

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> AppliedCoupon:
        return cls(
            code=coupon.code,
            description=coupon.description,
            type=coupon.type,
            value=coupon.value,
            max_discount=coupon.max_discount,
            min_order_amount=coupon.min_order_amount,
        )


@dataclass(frozen=True)
class CouponApplyResult:
    success: bool
    message: str


class CouponRegistry(Protocol):
    def get(self, code: str) -> Coupon | None: ...

    def consume(self, code: str) -> bool: ...


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def is_expired(coupon: Coupon, *, now: datetime | None = None) -> bool:
    if coupon.expires_at is None:
        return False
    return _as_aware(coupon.expires_at) < _as_aware(now or _now())


def is_exhausted(coupon: Coupon) -> bool:
    return coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit


class InMemoryCouponRegistry:
    """Process-local coupon lookup keyed by upper-cased code."""

    def __init__(self, coupons: Iterable[Coupon] = ()) -> None:
        self._lock = threading.Lock()
        self._coupons: dict[str, Coupon] = {}
        for coupon in coupons:
            self.put(coupon)

    def put(self, coupon: Coupon) -> None:
        code = normalize_code(coupon.code)
        with self._lock:
            self._coupons[code] = replace(coupon, code=code)

    def get(self, code: str) -> Coupon | None:
        with self._lock:
            return self._coupons.get(normalize_code(code))

    def all(self) -> list[Coupon]:
        with self._lock:
            return list(self._coupons.values())

    def consume(self, code: str) -> bool:
        code = normalize_code(code)
        with self._lock:
            coupon = self._coupons.get(code)
            if coupon is None or is_exhausted(coupon):
                return False
            self._coupons[code] = replace(coupon, usage_count=coupon.usage_count + 1)
            return True


def _shortfall_message(minimum: Decimal, subtotal: Decimal) -> str:
    shortfall = pricing.quantize_money(minimum - subtotal)
    return (
        f"Minimum order amount of {pricing.quantize_money(minimum)} required; "
        f"add {shortfall} more to use this coupon"
    )


def _rejection_reason(coupon: Coupon, cart: Cart, now: datetime | None) -> str | None:
    if not coupon.is_active:
        return "Coupon is no longer active"
    if is_expired(coupon, now=now):
        return "Coupon has expired"
    if is_exhausted(coupon):
        return "Coupon usage limit reached"
    subtotal = cart.subtotal()
    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        return _shortfall_message(coupon.min_order_amount, subtotal)
    return None


def apply_coupon(
    code: str | None, cart: Cart, registry: CouponRegistry, *, now: datetime | None = None
) -> CouponApplyResult:
    normalized = normalize_code(code)
    if not normalized:
        return CouponApplyResult(success=False, message="Enter a coupon code")

    coupon = registry.get(normalized)
    if coupon is None:
        return CouponApplyResult(success=False, message="Invalid coupon code")

    reason = _rejection_reason(coupon, cart, now)
    if reason is not None:
        logger.info("coupon_rejected", extra={"coupon_code": normalized, "reason": reason})
        return CouponApplyResult(success=False, message=reason)

    # Usage is counted when an order completes, not here; checkout may be abandoned.
    cart.applied_coupon = AppliedCoupon.from_coupon(coupon)
    return CouponApplyResult(success=True, message=coupon.description or f"Coupon {coupon.code} applied")


def remove_coupon(cart: Cart) -> None:
    cart.applied_coupon = None


def consume_coupon(code: str, registry: CouponRegistry) -> bool:
    consumed = registry.consume(normalize_code(code))
    if not consumed:
        logger.warning("coupon_consume_skipped", extra={"coupon_code": normalize_code(code)})
    return consumed
