from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.coupon import CouponCode
from storefront.schemas.coupon import CouponCreate, CouponUpdate
from storefront.services.coupons import (
    Coupon,
    CouponType,
    InMemoryCouponRegistry,
    is_exhausted,
    is_expired,
    normalize_code,
)

logger = logging.getLogger(__name__)


def to_coupon(record: CouponCode) -> Coupon:
    return Coupon(
        code=record.code,
        type=CouponType(record.type),
        value=Decimal(record.value),
        description=record.description or "",
        min_order_amount=Decimal(record.min_order_amount) if record.min_order_amount is not None else None,
        max_discount=Decimal(record.max_discount) if record.max_discount is not None else None,
        usage_limit=record.usage_limit,
        usage_count=int(record.usage_count or 0),
        expires_at=record.expires_at,
        is_active=bool(record.is_active),
    )


async def get_coupon_record(session: AsyncSession, code: str) -> CouponCode | None:
    # consume_coupon bypasses the identity map, so always reload from the row.
    result = await session.execute(
        select(CouponCode)
        .where(CouponCode.code == normalize_code(code))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_coupon(session: AsyncSession, code: str) -> Coupon | None:
    record = await get_coupon_record(session, code)
    return to_coupon(record) if record else None


async def list_coupons(session: AsyncSession) -> list[CouponCode]:
    result = await session.execute(
        select(CouponCode).order_by(CouponCode.code).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_available_coupons(session: AsyncSession, *, now: datetime | None = None) -> list[CouponCode]:
    """Active coupons that can still be redeemed, for the storefront banner."""
    result = await session.execute(
        select(CouponCode)
        .where(CouponCode.is_active.is_(True))
        .order_by(CouponCode.code)
        .execution_options(populate_existing=True)
    )
    available = []
    for record in result.scalars().all():
        coupon = to_coupon(record)
        if is_expired(coupon, now=now) or is_exhausted(coupon):
            continue
        available.append(record)
    return available


async def load_registry(session: AsyncSession, *, codes: list[str] | None = None) -> InMemoryCouponRegistry:
    """Snapshot coupons into a registry the pure engine can read synchronously."""
    query = select(CouponCode).execution_options(populate_existing=True)
    if codes is not None:
        query = query.where(CouponCode.code.in_([normalize_code(code) for code in codes]))
    result = await session.execute(query)
    return InMemoryCouponRegistry(to_coupon(record) for record in result.scalars().all())


async def create_coupon(session: AsyncSession, payload: CouponCreate) -> CouponCode:
    if await get_coupon_record(session, payload.code):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon code already exists")
    record = CouponCode(**payload.model_dump())
    session.add(record)
    await session.commit()
    await session.refresh(record)
    logger.info("coupon_created", extra={"coupon_code": record.code})
    return record


async def update_coupon(session: AsyncSession, code: str, payload: CouponUpdate) -> CouponCode:
    record = await get_coupon_record(session, code)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    changes = payload.model_dump(exclude_unset=True)
    new_type = changes.get("type") or record.type
    new_value = changes.get("value") if changes.get("value") is not None else record.value
    if new_type == CouponType.percentage and Decimal(new_value) > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Percentage coupons cannot exceed 100")
    new_limit = changes["usage_limit"] if "usage_limit" in changes else record.usage_limit
    new_count = changes.get("usage_count") if changes.get("usage_count") is not None else record.usage_count
    if new_limit is not None and int(new_count or 0) > new_limit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Usage count cannot exceed usage limit")
    for field, value in changes.items():
        if field in {"type", "value", "description", "is_active", "usage_count"} and value is None:
            continue
        setattr(record, field, value)
    session.add(record)
    await session.commit()
    await session.refresh(record)
    logger.info("coupon_updated", extra={"coupon_code": record.code})
    return record


async def delete_coupon(session: AsyncSession, code: str) -> None:
    record = await get_coupon_record(session, code)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    await session.delete(record)
    await session.commit()


async def consume_coupon(session: AsyncSession, code: str) -> bool:
    """Count one redemption of ``code``.

    A single conditional UPDATE, so concurrent checkouts cannot push
    ``usage_count`` past ``usage_limit``. The caller owns the commit.
    """
    normalized = normalize_code(code)
    result = await session.execute(
        update(CouponCode)
        .where(CouponCode.code == normalized)
        .where(or_(CouponCode.usage_limit.is_(None), CouponCode.usage_count < CouponCode.usage_limit))
        .values(usage_count=CouponCode.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    consumed = (result.rowcount or 0) > 0
    if not consumed:
        logger.warning("coupon_consume_skipped", extra={"coupon_code": normalized})
    return consumed
