from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.order import OrderStatus, PaymentStatus
from storefront.schemas.cart import CartLineIn


class OrderCreate(BaseModel):
    items: list[CartLineIn] = Field(min_length=1)
    coupon_code: str | None = Field(default=None, max_length=40)
    payment_method: str = Field(min_length=1, max_length=30)
    payment_reference: str | None = Field(default=None, max_length=120)


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    payment_reference: str | None = None
    currency: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    discount_applied: Decimal
    total: Decimal
    coupon_code: str | None = None
    tracking_number: str | None = None
    cancel_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    items: list[OrderItemRead] = []


class PaymentConfirm(BaseModel):
    payment_reference: str = Field(min_length=1, max_length=120)


class OrderCancelRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: str | None = Field(default=None, max_length=50)
