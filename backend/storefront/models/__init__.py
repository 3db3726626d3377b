from storefront.db.base import Base  # noqa: F401
from storefront.models.coupon import CouponCode  # noqa: F401
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus  # noqa: F401

__all__ = [
    "Base",
    "CouponCode",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
]
