from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import require_admin
from storefront.db.session import get_session
from storefront.schemas.coupon import CouponCreate, CouponRead, CouponUpdate
from storefront.services import coupon_store

router = APIRouter(prefix="/admin/coupons", tags=["admin"], dependencies=[Depends(require_admin)])
public_router = APIRouter(prefix="/coupons", tags=["checkout"])


@public_router.get("", response_model=list[CouponRead])
async def list_available_coupons(session: AsyncSession = Depends(get_session)):
    return await coupon_store.list_available_coupons(session)


@router.get("", response_model=list[CouponRead])
async def list_coupons(session: AsyncSession = Depends(get_session)):
    return await coupon_store.list_coupons(session)


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
async def create_coupon(payload: CouponCreate, session: AsyncSession = Depends(get_session)):
    return await coupon_store.create_coupon(session, payload)


@router.patch("/{code}", response_model=CouponRead)
async def update_coupon(code: str, payload: CouponUpdate, session: AsyncSession = Depends(get_session)):
    return await coupon_store.update_coupon(session, code, payload)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_coupon(code: str, session: AsyncSession = Depends(get_session)) -> Response:
    await coupon_store.delete_coupon(session, code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
