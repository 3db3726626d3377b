from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import require_admin
from storefront.db.session import get_session
from storefront.schemas.cart import build_cart
from storefront.schemas.order import OrderCancelRequest, OrderCreate, OrderRead, OrderStatusUpdate, PaymentConfirm
from storefront.services import coupon_store, pricing
from storefront.services import orders as order_service
from storefront.services.coupons import apply_coupon

router = APIRouter(tags=["orders"])


@router.post("/orders", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def place_order(payload: OrderCreate, session: AsyncSession = Depends(get_session)):
    cart = build_cart(payload.items)
    if payload.coupon_code:
        registry = await coupon_store.load_registry(session, codes=[payload.coupon_code])
        # A rejected code simply leaves the order undiscounted.
        apply_coupon(payload.coupon_code, cart, registry)
    return await order_service.place_order(
        session,
        cart=cart,
        policy=pricing.checkout_policy(),
        payment_method=payload.payment_method,
        payment_reference=payload.payment_reference,
    )


@router.get("/orders/{order_number}", response_model=OrderRead)
async def get_order(order_number: str, session: AsyncSession = Depends(get_session)):
    return await order_service.get_order(session, order_number)


@router.post("/orders/{order_number}/payment", response_model=OrderRead)
async def confirm_payment(order_number: str, payload: PaymentConfirm, session: AsyncSession = Depends(get_session)):
    order = await order_service.get_order(session, order_number)
    return await order_service.confirm_payment(session, order=order, payment_reference=payload.payment_reference)


@router.post("/orders/{order_number}/cancel", response_model=OrderRead)
async def cancel_order(order_number: str, payload: OrderCancelRequest, session: AsyncSession = Depends(get_session)):
    order = await order_service.get_order(session, order_number)
    return await order_service.cancel_order(session, order=order, reason=payload.reason)


@router.delete("/orders/{order_number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_number: str, session: AsyncSession = Depends(get_session)) -> Response:
    order = await order_service.get_order(session, order_number)
    await order_service.delete_order(session, order=order)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/admin/orders/{order_number}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
    tags=["admin"],
)
async def update_order_status(
    order_number: str, payload: OrderStatusUpdate, session: AsyncSession = Depends(get_session)
):
    order = await order_service.get_order(session, order_number)
    return await order_service.update_order_status(
        session, order=order, new_status=payload.status, tracking_number=payload.tracking_number
    )
