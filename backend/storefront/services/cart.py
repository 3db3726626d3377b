from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.services.coupons import AppliedCoupon


@dataclass(frozen=True)
class CartLine:
    id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    max_quantity: int | None = None

    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def clamp_quantity(quantity: int, max_quantity: int | None) -> int:
    if max_quantity is not None:
        quantity = min(quantity, max_quantity)
    return max(1, quantity)


@dataclass
class Cart:
    """One shopper's cart session: ordered lines plus at most one applied coupon.

    Mutations never reject input; out-of-range quantities are clamped instead.
    """

    lines: list[CartLine] = field(default_factory=list)
    applied_coupon: AppliedCoupon | None = None

    def _index_of(self, line_id: str) -> int | None:
        for idx, line in enumerate(self.lines):
            if line.id == line_id:
                return idx
        return None

    def add_item(self, line: CartLine) -> None:
        idx = self._index_of(line.id)
        if idx is None:
            self.lines.append(replace(line, quantity=clamp_quantity(line.quantity, line.max_quantity)))
            return
        existing = self.lines[idx]
        max_quantity = existing.max_quantity if existing.max_quantity is not None else line.max_quantity
        quantity = clamp_quantity(existing.quantity + line.quantity, max_quantity)
        self.lines[idx] = replace(existing, quantity=quantity, max_quantity=max_quantity)

    def update_quantity(self, line_id: str, quantity: int) -> None:
        idx = self._index_of(line_id)
        if idx is None:
            return
        existing = self.lines[idx]
        self.lines[idx] = replace(existing, quantity=clamp_quantity(quantity, existing.max_quantity))

    def remove_item(self, line_id: str) -> None:
        self.lines = [line for line in self.lines if line.id != line_id]

    def clear(self) -> None:
        self.lines = []
        self.applied_coupon = None

    def subtotal(self) -> Decimal:
        # Unrounded; rounding happens once, at display/snapshot time.
        return sum((line.line_total() for line in self.lines), start=Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def contains(self, line_id: str) -> bool:
        return self._index_of(line_id) is not None

    def quantity_of(self, line_id: str) -> int:
        idx = self._index_of(line_id)
        return self.lines[idx].quantity if idx is not None else 0

    def snapshot(self) -> tuple[CartLine, ...]:
        return tuple(self.lines)
