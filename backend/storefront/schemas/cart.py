from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from storefront.services.cart import Cart, CartLine


class CartLineIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    unit_price: Decimal = Field(ge=0)
    quantity: int = 1
    max_quantity: int | None = Field(default=None, ge=1)


def build_cart(lines: list[CartLineIn]) -> Cart:
    cart = Cart()
    for line in lines:
        cart.add_item(
            CartLine(
                id=line.id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                max_quantity=line.max_quantity,
            )
        )
    return cart


class Totals(BaseModel):
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    currency: str = "USD"


class AppliedCouponRead(BaseModel):
    code: str
    description: str
    type: str
    value: Decimal
    max_discount: Decimal | None = None


class CouponValidateRequest(BaseModel):
    code: str = Field(default="", max_length=40)
    items: list[CartLineIn] = []


class CouponValidateResponse(BaseModel):
    success: bool
    message: str
    discount: Decimal = Decimal("0.00")
    coupon: AppliedCouponRead | None = None


class QuoteRequest(BaseModel):
    items: list[CartLineIn] = []
    coupon_code: str | None = Field(default=None, max_length=40)
    policy: Literal["cart", "checkout"] = "checkout"
    display_currency: str = Field(default="USD", min_length=3, max_length=3)


class QuoteResponse(BaseModel):
    item_count: int
    totals: Totals
    coupon: AppliedCouponRead | None = None
    coupon_message: str | None = None
    total_display: str
    total_display_secondary: str
