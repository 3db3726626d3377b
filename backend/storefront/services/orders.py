from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from storefront.services import coupon_store, pricing
from storefront.services.cart import Cart

logger = logging.getLogger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
CANCELLABLE_STATUSES = {OrderStatus.pending, OrderStatus.processing}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(*, now: datetime | None = None) -> str:
    stamp = int((now or _now()).timestamp() * 1000)
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(9))
    return f"ORD-{stamp}-{suffix}"


def is_prepaid(payment_method: str) -> bool:
    return (payment_method or "").strip().lower() in {m.lower() for m in settings.prepaid_payment_methods}


def can_cancel(order: Order) -> bool:
    return order.status in CANCELLABLE_STATUSES


def can_delete(order: Order) -> bool:
    return order.status == OrderStatus.cancelled


async def record_coupon_usage(session: AsyncSession, *, order: Order) -> bool:
    """Count the order's coupon at most once over the order's lifetime."""
    if not order.coupon_code or order.coupon_counted:
        return False
    consumed = await coupon_store.consume_coupon(session, order.coupon_code)
    order.coupon_counted = True
    session.add(order)
    return consumed


async def place_order(
    session: AsyncSession,
    *,
    cart: Cart,
    policy: pricing.PricingPolicy,
    payment_method: str,
    payment_reference: str | None = None,
    now: datetime | None = None,
) -> Order:
    if not cart.lines:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")

    applied = cart.applied_coupon
    totals = pricing.compute_totals(cart, applied, policy).quantized(rounding=settings.money_rounding)
    coupon_code = applied.code if applied is not None and totals.discount > 0 else None
    prepaid = is_prepaid(payment_method)

    order = Order(
        order_number=generate_order_number(now=now),
        status=OrderStatus.pending if prepaid else OrderStatus.processing,
        payment_status=PaymentStatus.pending,
        payment_method=payment_method.strip().lower(),
        payment_reference=payment_reference,
        currency=settings.base_currency,
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping_cost,
        tax=totals.tax,
        discount_applied=totals.discount,
        total=totals.total,
        coupon_code=coupon_code,
        coupon_counted=False,
        items=[
            OrderItem(
                product_id=line.id,
                name=line.name,
                unit_price=pricing.quantize_money(line.unit_price),
                quantity=line.quantity,
                line_total=pricing.quantize_money(line.line_total()),
            )
            for line in cart.snapshot()
        ],
    )
    session.add(order)
    await session.flush()

    if not prepaid:
        await record_coupon_usage(session, order=order)

    await session.commit()
    await session.refresh(order)
    cart.clear()
    logger.info(
        "order_placed",
        extra={"order_number": order.order_number, "total": order.total, "coupon_code": coupon_code},
    )
    return order


async def get_order(session: AsyncSession, order_number: str) -> Order:
    result = await session.execute(select(Order).where(Order.order_number == order_number))
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


async def confirm_payment(session: AsyncSession, *, order: Order, payment_reference: str) -> Order:
    if order.status == OrderStatus.cancelled:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order is cancelled")
    if order.payment_status == PaymentStatus.paid:
        return order
    order.payment_status = PaymentStatus.paid
    order.payment_reference = payment_reference
    if order.status == OrderStatus.pending:
        order.status = OrderStatus.processing
    session.add(order)
    await record_coupon_usage(session, order=order)
    await session.commit()
    await session.refresh(order)
    logger.info("order_paid", extra={"order_number": order.order_number})
    return order


async def cancel_order(session: AsyncSession, *, order: Order, reason: str, now: datetime | None = None) -> Order:
    if not can_cancel(order):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order cannot be cancelled")
    order.status = OrderStatus.cancelled
    order.cancel_reason = reason
    order.cancelled_at = now or _now()
    session.add(order)
    await session.commit()
    await session.refresh(order)
    logger.info("order_cancelled", extra={"order_number": order.order_number})
    return order


async def update_order_status(
    session: AsyncSession,
    *,
    order: Order,
    new_status: OrderStatus,
    tracking_number: str | None = None,
    now: datetime | None = None,
) -> Order:
    stamp = now or _now()
    order.status = new_status
    if tracking_number:
        order.tracking_number = tracking_number
    if new_status == OrderStatus.shipped and order.shipped_at is None:
        order.shipped_at = stamp
    elif new_status == OrderStatus.delivered and order.delivered_at is None:
        order.delivered_at = stamp
    elif new_status == OrderStatus.cancelled and order.cancelled_at is None:
        order.cancelled_at = stamp
    session.add(order)
    await session.commit()
    await session.refresh(order)
    logger.info("order_status_updated", extra={"order_number": order.order_number, "status": new_status.value})
    return order


async def delete_order(session: AsyncSession, *, order: Order) -> None:
    if not can_delete(order):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only cancelled orders can be deleted")
    await session.delete(order)
    await session.commit()
