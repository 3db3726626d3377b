from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.db.session import get_session
from storefront.schemas.cart import (
    AppliedCouponRead,
    CouponValidateRequest,
    CouponValidateResponse,
    QuoteRequest,
    QuoteResponse,
    Totals,
    build_cart,
)
from storefront.services import coupon_store, fx, pricing
from storefront.services.coupons import AppliedCoupon, apply_coupon

router = APIRouter(tags=["checkout"])


def _applied_read(applied: AppliedCoupon | None) -> AppliedCouponRead | None:
    if applied is None:
        return None
    return AppliedCouponRead(
        code=applied.code,
        description=applied.description,
        type=applied.type.value,
        value=applied.value,
        max_discount=applied.max_discount,
    )


@router.post("/checkout/quote", response_model=QuoteResponse)
async def quote(payload: QuoteRequest, session: AsyncSession = Depends(get_session)) -> QuoteResponse:
    cart = build_cart(payload.items)
    message = None
    if payload.coupon_code:
        registry = await coupon_store.load_registry(session, codes=[payload.coupon_code])
        message = apply_coupon(payload.coupon_code, cart, registry).message

    policy = pricing.cart_policy() if payload.policy == "cart" else pricing.checkout_policy()
    totals = pricing.compute_totals(cart, cart.applied_coupon, policy).quantized(rounding=settings.money_rounding)
    try:
        display = fx.format_dual(totals.total, primary=payload.display_currency)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return QuoteResponse(
        item_count=cart.item_count(),
        totals=Totals(
            subtotal=totals.subtotal,
            shipping=totals.shipping_cost,
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
            currency=settings.base_currency,
        ),
        coupon=_applied_read(cart.applied_coupon),
        coupon_message=message,
        total_display=display.primary,
        total_display_secondary=display.secondary,
    )


@router.post("/coupons/validate", response_model=CouponValidateResponse)
async def validate_coupon(
    payload: CouponValidateRequest, session: AsyncSession = Depends(get_session)
) -> CouponValidateResponse:
    cart = build_cart(payload.items)
    registry = await coupon_store.load_registry(session, codes=[payload.code])
    result = apply_coupon(payload.code, cart, registry)
    discount = Decimal("0.00")
    if result.success:
        discount = pricing.quantize_money(
            pricing.calculate_discount(cart.subtotal(), cart.applied_coupon), rounding=settings.money_rounding
        )
    return CouponValidateResponse(
        success=result.success,
        message=result.message,
        discount=discount,
        coupon=_applied_read(cart.applied_coupon) if result.success else None,
    )
