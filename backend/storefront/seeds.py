from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.coupon import CouponCode
from storefront.services import coupon_store
from storefront.services.coupons import Coupon, CouponType

logger = logging.getLogger(__name__)


DEFAULT_COUPONS: tuple[Coupon, ...] = (
    Coupon(
        code="WELCOME10",
        type=CouponType.percentage,
        value=Decimal("10"),
        min_order_amount=Decimal("50"),
        description="10% off on orders above $50",
        usage_limit=100,
        usage_count=25,
    ),
    Coupon(
        code="SAVE20",
        type=CouponType.fixed,
        value=Decimal("20"),
        min_order_amount=Decimal("100"),
        description="$20 off on orders above $100",
        usage_limit=50,
        usage_count=12,
    ),
    Coupon(
        code="BIGDEAL",
        type=CouponType.percentage,
        value=Decimal("25"),
        min_order_amount=Decimal("200"),
        max_discount=Decimal("50"),
        description="25% off (max $50) on orders above $200",
        usage_limit=20,
        usage_count=5,
    ),
    Coupon(
        code="FREESHIP",
        type=CouponType.fixed,
        value=Decimal("5.99"),
        description="Free shipping on any order",
        usage_limit=200,
        usage_count=89,
    ),
    Coupon(
        code="STUDENT15",
        type=CouponType.percentage,
        value=Decimal("15"),
        min_order_amount=Decimal("75"),
        description="15% student discount on orders above $75",
        usage_limit=75,
        usage_count=33,
    ),
)


async def seed_coupons(session: AsyncSession) -> list[str]:
    """Insert any default coupon that is not already present; returns inserted codes."""
    inserted: list[str] = []
    for coupon in DEFAULT_COUPONS:
        if await coupon_store.get_coupon_record(session, coupon.code):
            continue
        session.add(
            CouponCode(
                code=coupon.code,
                type=coupon.type,
                value=coupon.value,
                description=coupon.description,
                min_order_amount=coupon.min_order_amount,
                max_discount=coupon.max_discount,
                usage_limit=coupon.usage_limit,
                usage_count=coupon.usage_count,
                expires_at=coupon.expires_at,
                is_active=coupon.is_active,
            )
        )
        inserted.append(coupon.code)
    await session.commit()
    logger.info("coupons_seeded", extra={"codes": inserted})
    return inserted
